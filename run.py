import click

from esg_platform import create_app, db, _seed_admin
from esg_platform.training_service import recompute_stored_statuses

app = create_app()


@app.cli.command("init-db")
def init_db():
    """Initialize the database and create admin user."""
    db.create_all()
    if _seed_admin(app):
        print(f"Database initialized. Admin user created ({app.config['ADMIN_USERNAME']}).")
    else:
        print("Database already initialized.")


@app.cli.command("recompute-training-status")
@click.option("--dry-run", is_flag=True, help="Report how many would change without saving.")
def recompute_training_status(dry_run):
    """Rewrite stored training status snapshots from program dates."""
    changed = recompute_stored_statuses(dry_run=dry_run)
    if dry_run:
        print(f"{changed} training record(s) would change.")
        return
    print(f"{changed} training record(s) updated.")


if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
