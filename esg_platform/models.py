from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from esg_platform import db, login_manager


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    full_name = db.Column(db.String(128), nullable=False)
    department = db.Column(db.String(128), default="")
    role = db.Column(db.String(20), nullable=False, default="viewer")
    # Roles: admin, editor, viewer
    must_change_password = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=_utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def can_edit(self):
        return self.role in ("editor", "admin")

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "department": self.department,
            "role": self.role,
            "must_change_password": bool(self.must_change_password),
        }


# ---------------------------------------------------------------------------
# Workforce
# ---------------------------------------------------------------------------

class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(200), nullable=False)
    employee_code = db.Column(db.String(50), unique=True, nullable=True, index=True)
    email = db.Column(db.String(120), default="")
    department = db.Column(db.String(120), default="")
    role = db.Column(db.String(120), default="")
    gender = db.Column(db.String(30), default="")
    hire_date = db.Column(db.Date, nullable=True)
    birth_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), default="Ativo")
    # Status: Ativo, Inativo
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    trainings = db.relationship(
        "EmployeeTraining", backref="employee", lazy="dynamic", cascade="all, delete-orphan"
    )
    benefits = db.relationship(
        "EmployeeBenefit", backref="employee", lazy="dynamic", cascade="all, delete-orphan"
    )

    @property
    def is_active(self):
        return self.status == "Ativo"

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "employee_code": self.employee_code,
            "email": self.email,
            "department": self.department,
            "role": self.role,
            "gender": self.gender,
            "hire_date": _iso(self.hire_date),
            "birth_date": _iso(self.birth_date),
            "status": self.status,
        }


class EmployeeBenefit(db.Model):
    __tablename__ = "employee_benefits"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    benefit_type = db.Column(db.String(60), default="Outro")
    # Types: Saúde, Odontológico, Alimentação, Transporte, Previdência, Seguro de Vida, Outro
    monthly_cost = db.Column(db.Float, default=0.0)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    is_active = db.Column(db.Boolean, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "name": self.name,
            "benefit_type": self.benefit_type,
            "monthly_cost": self.monthly_cost,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "is_active": bool(self.is_active),
        }


# ---------------------------------------------------------------------------
# Training
# ---------------------------------------------------------------------------

class TrainingProgram(db.Model):
    __tablename__ = "training_programs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    category = db.Column(db.String(100), default="")
    duration_hours = db.Column(db.Float, default=0.0)
    is_mandatory = db.Column(db.Boolean, default=False)
    valid_for_months = db.Column(db.Integer, nullable=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    efficacy_evaluation_deadline = db.Column(db.Date, nullable=True)
    instructor = db.Column(db.String(200), default="")
    status = db.Column(db.String(20), default="Ativo")
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    enrollments = db.relationship(
        "EmployeeTraining", backref="program", lazy="dynamic", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "duration_hours": self.duration_hours,
            "is_mandatory": bool(self.is_mandatory),
            "valid_for_months": self.valid_for_months,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "efficacy_evaluation_deadline": _iso(self.efficacy_evaluation_deadline),
            "instructor": self.instructor,
            "status": self.status,
        }


class EmployeeTraining(db.Model):
    __tablename__ = "employee_trainings"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    training_program_id = db.Column(
        db.Integer, db.ForeignKey("training_programs.id"), nullable=False, index=True
    )
    completion_date = db.Column(db.Date, nullable=True)
    score = db.Column(db.Float, nullable=True)
    # Snapshot written at every save; see training_status for the live value
    status = db.Column(db.String(40), nullable=False, default="Planejado")
    expiration_date = db.Column(db.Date, nullable=True)
    is_cancelled = db.Column(db.Boolean, default=False)
    has_efficacy_evaluation = db.Column(db.Boolean, default=False)
    instructor = db.Column(db.String(200), default="")
    notes = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "training_program_id": self.training_program_id,
            "program_name": self.program.name if self.program else None,
            "category": self.program.category if self.program else None,
            "duration_hours": self.program.duration_hours if self.program else None,
            "completion_date": _iso(self.completion_date),
            "score": self.score,
            "stored_status": self.status,
            "expiration_date": _iso(self.expiration_date),
            "is_cancelled": bool(self.is_cancelled),
            "has_efficacy_evaluation": bool(self.has_efficacy_evaluation),
            "instructor": self.instructor,
            "notes": self.notes,
        }


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class Document(db.Model):
    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(256), nullable=False)
    original_name = db.Column(db.String(256), nullable=False)
    file_size = db.Column(db.Integer, default=0)
    category = db.Column(db.String(100), default="Geral")
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True, index=True)
    extracted_text = db.Column(db.Text, default="")
    uploaded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    uploaded_at = db.Column(db.DateTime, default=_utcnow)

    uploader = db.relationship("User")
    employee = db.relationship(
        "Employee",
        backref=db.backref("documents", lazy="dynamic", cascade="all, delete-orphan"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "original_name": self.original_name,
            "file_size": self.file_size,
            "category": self.category,
            "employee_id": self.employee_id,
            "has_text": bool(self.extracted_text),
            "uploaded_by": self.uploaded_by,
            "uploaded_at": _iso(self.uploaded_at),
        }


# ---------------------------------------------------------------------------
# GRI report
# ---------------------------------------------------------------------------

class GRIReport(db.Model):
    __tablename__ = "gri_reports"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(256), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    gri_standard_version = db.Column(db.String(60), default="GRI Standards 2021")
    reporting_period_start = db.Column(db.Date, nullable=True)
    reporting_period_end = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), default="Rascunho")
    # Status: Rascunho, Em Andamento, Em Revisão, Finalizado, Publicado
    current_step = db.Column(db.Integer, default=1)
    furthest_step = db.Column(db.Integer, default=1)
    organization_purpose = db.Column(db.Text, default="")
    report_objective = db.Column(db.Text, default="")
    target_audience = db.Column(db.JSON, default=list)
    executive_summary = db.Column(db.Text, default="")
    ceo_message = db.Column(db.Text, default="")
    methodology = db.Column(db.Text, default="")
    completion_percentage = db.Column(db.Integer, default=0)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)
    published_at = db.Column(db.DateTime, nullable=True)

    sections = db.relationship(
        "GRIReportSection", backref="report", lazy="dynamic",
        cascade="all, delete-orphan", order_by="GRIReportSection.order_index",
    )
    indicator_values = db.relationship(
        "GRIIndicatorValue", backref="report", lazy="dynamic", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "gri_standard_version": self.gri_standard_version,
            "reporting_period_start": _iso(self.reporting_period_start),
            "reporting_period_end": _iso(self.reporting_period_end),
            "status": self.status,
            "current_step": self.current_step,
            "furthest_step": self.furthest_step,
            "organization_purpose": self.organization_purpose,
            "report_objective": self.report_objective,
            "target_audience": self.target_audience or [],
            "executive_summary": self.executive_summary,
            "ceo_message": self.ceo_message,
            "methodology": self.methodology,
            "completion_percentage": self.completion_percentage,
        }


class GRIReportSection(db.Model):
    __tablename__ = "gri_report_sections"
    __table_args__ = (db.UniqueConstraint("report_id", "section_key"),)

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(db.Integer, db.ForeignKey("gri_reports.id"), nullable=False, index=True)
    section_key = db.Column(db.String(60), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, default="")
    order_index = db.Column(db.Integer, default=0)
    is_complete = db.Column(db.Boolean, default=False)
    ai_generated_content = db.Column(db.Boolean, default=False)
    last_ai_update = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "section_key": self.section_key,
            "title": self.title,
            "content": self.content,
            "order_index": self.order_index,
            "is_complete": bool(self.is_complete),
            "ai_generated_content": bool(self.ai_generated_content),
            "last_ai_update": _iso(self.last_ai_update),
        }


class GRIIndicatorValue(db.Model):
    __tablename__ = "gri_indicator_values"
    __table_args__ = (db.UniqueConstraint("report_id", "indicator_code"),)

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(db.Integer, db.ForeignKey("gri_reports.id"), nullable=False, index=True)
    indicator_code = db.Column(db.String(20), nullable=False)
    numeric_value = db.Column(db.Float, nullable=True)
    text_value = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(40), default="")
    methodology = db.Column(db.Text, default="")
    data_source = db.Column(db.String(200), default="")
    notes = db.Column(db.Text, default="")
    is_complete = db.Column(db.Boolean, default=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "indicator_code": self.indicator_code,
            "numeric_value": self.numeric_value,
            "text_value": self.text_value,
            "unit": self.unit,
            "methodology": self.methodology,
            "data_source": self.data_source,
            "notes": self.notes,
            "is_complete": bool(self.is_complete),
        }


# ---------------------------------------------------------------------------
# Environmental, economic and stakeholder data
# ---------------------------------------------------------------------------

class EmissionEntry(db.Model):
    __tablename__ = "emission_entries"

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False, index=True)
    scope = db.Column(db.Integer, nullable=False)
    source_name = db.Column(db.String(200), default="")
    category = db.Column(db.String(120), default="")
    tco2e = db.Column(db.Float, default=0.0)

    def to_dict(self):
        return {
            "id": self.id,
            "year": self.year,
            "scope": self.scope,
            "source_name": self.source_name,
            "category": self.category,
            "tco2e": self.tco2e,
        }


class WaterRecord(db.Model):
    __tablename__ = "water_records"

    id = db.Column(db.Integer, primary_key=True)
    source_type = db.Column(db.String(120), default="")
    source_name = db.Column(db.String(200), default="")
    withdrawal_volume_m3 = db.Column(db.Float, default=0.0)
    consumption_volume_m3 = db.Column(db.Float, nullable=True)
    discharge_volume_m3 = db.Column(db.Float, default=0.0)
    total_dissolved_solids_mg_l = db.Column(db.Float, nullable=True)
    is_water_stressed_area = db.Column(db.Boolean, default=False)
    water_quality = db.Column(db.String(60), default="")
    period_start_date = db.Column(db.Date, nullable=False)
    period_end_date = db.Column(db.Date, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "source_type": self.source_type,
            "source_name": self.source_name,
            "withdrawal_volume_m3": self.withdrawal_volume_m3,
            "consumption_volume_m3": self.consumption_volume_m3,
            "discharge_volume_m3": self.discharge_volume_m3,
            "total_dissolved_solids_mg_l": self.total_dissolved_solids_mg_l,
            "is_water_stressed_area": bool(self.is_water_stressed_area),
            "water_quality": self.water_quality,
            "period_start_date": _iso(self.period_start_date),
            "period_end_date": _iso(self.period_end_date),
        }


class WasteLog(db.Model):
    __tablename__ = "waste_logs"

    id = db.Column(db.Integer, primary_key=True)
    waste_type = db.Column(db.String(200), nullable=False)
    is_hazardous = db.Column(db.Boolean, default=False)
    quantity = db.Column(db.Float, default=0.0)
    unit = db.Column(db.String(10), default="t")
    final_destination = db.Column(db.String(120), default="")
    log_date = db.Column(db.Date, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "waste_type": self.waste_type,
            "is_hazardous": bool(self.is_hazardous),
            "quantity": self.quantity,
            "unit": self.unit,
            "final_destination": self.final_destination,
            "log_date": _iso(self.log_date),
        }


class EconomicValueEntry(db.Model):
    """Manually entered DVA line items for one fiscal year."""
    __tablename__ = "economic_value_entries"

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, unique=True, nullable=False)
    # Generated
    revenue = db.Column(db.Float, nullable=True)
    financial_income = db.Column(db.Float, nullable=True)
    asset_sales = db.Column(db.Float, nullable=True)
    # Operational costs
    raw_materials = db.Column(db.Float, nullable=True)
    suppliers = db.Column(db.Float, nullable=True)
    other_operating_costs = db.Column(db.Float, nullable=True)
    # Employees
    salaries = db.Column(db.Float, nullable=True)
    benefits = db.Column(db.Float, nullable=True)
    # Government
    payroll_taxes = db.Column(db.Float, nullable=True)
    income_taxes = db.Column(db.Float, nullable=True)
    sales_taxes = db.Column(db.Float, nullable=True)
    other_taxes = db.Column(db.Float, nullable=True)
    # Capital providers
    interest_payments = db.Column(db.Float, nullable=True)
    dividends = db.Column(db.Float, nullable=True)
    loan_repayments = db.Column(db.Float, nullable=True)
    # Community
    donations = db.Column(db.Float, nullable=True)
    sponsorships = db.Column(db.Float, nullable=True)
    infrastructure = db.Column(db.Float, nullable=True)

    LINE_ITEMS = (
        "revenue", "financial_income", "asset_sales",
        "raw_materials", "suppliers", "other_operating_costs",
        "salaries", "benefits",
        "payroll_taxes", "income_taxes", "sales_taxes", "other_taxes",
        "interest_payments", "dividends", "loan_repayments",
        "donations", "sponsorships", "infrastructure",
    )

    def to_dict(self):
        data = {"id": self.id, "year": self.year}
        for name in self.LINE_ITEMS:
            data[name] = getattr(self, name)
        return data


class Stakeholder(db.Model):
    __tablename__ = "stakeholders"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), default="")
    influence_level = db.Column(db.Integer, default=1)
    interest_level = db.Column(db.Integer, default=1)
    engagement_score = db.Column(db.Float, nullable=True)
    last_engagement_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, default="")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "influence_level": self.influence_level,
            "interest_level": self.interest_level,
            "engagement_score": self.engagement_score,
            "last_engagement_date": _iso(self.last_engagement_date),
            "notes": self.notes,
        }
