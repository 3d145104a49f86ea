"""
GRI report wizard

Seven fixed steps walked in order. Going back is always allowed; going
forward only one step at a time, so every data-collection module is seen
before review and export.
"""

from esg_platform.results import OperationResult

WIZARD_STEPS = [
    {
        "number": 1,
        "key": "planning",
        "title": "Planejamento",
        "description": "Purpose, objective, audience and reporting period.",
        "gri_standards": ["GRI 2-1", "GRI 2-2", "GRI 2-3"],
    },
    {
        "number": 2,
        "key": "strategy_governance",
        "title": "Estratégia e Governança",
        "description": "Leadership message, governance structure, ethics and policies.",
        "gri_standards": ["GRI 2-9", "GRI 2-12", "GRI 2-22", "GRI 2-23"],
    },
    {
        "number": 3,
        "key": "environmental",
        "title": "Ambiental",
        "description": "Emissions, water and waste.",
        "gri_standards": ["GRI 303-3", "GRI 305-1", "GRI 305-2", "GRI 305-3", "GRI 306-3"],
    },
    {
        "number": 4,
        "key": "social",
        "title": "Social",
        "description": "Workforce, benefits and training.",
        "gri_standards": ["GRI 401-1", "GRI 401-2", "GRI 404-1"],
    },
    {
        "number": 5,
        "key": "economic",
        "title": "Econômico",
        "description": "Economic value generated and distributed (DVA).",
        "gri_standards": ["GRI 201-1"],
    },
    {
        "number": 6,
        "key": "stakeholders",
        "title": "Stakeholders",
        "description": "Stakeholder mapping and engagement.",
        "gri_standards": ["GRI 2-29"],
    },
    {
        "number": 7,
        "key": "review_export",
        "title": "Revisão e Exportação",
        "description": "Review sections, generate text and export the report.",
        "gri_standards": [],
    },
]

FIRST_STEP = 1
LAST_STEP = len(WIZARD_STEPS)


def get_step(number):
    if not isinstance(number, int) or number < FIRST_STEP or number > LAST_STEP:
        return None
    return WIZARD_STEPS[number - 1]


def get_step_by_key(key):
    return next((s for s in WIZARD_STEPS if s["key"] == key), None)


def progress_percentage(current):
    return round((current - 1) / (LAST_STEP - 1) * 100)


def wizard_state(current, furthest):
    return {
        "current_step": current,
        "furthest_step": furthest,
        "step": get_step(current),
        "steps": WIZARD_STEPS,
        "progress": progress_percentage(current),
        "is_first": current == FIRST_STEP,
        "is_last": current == LAST_STEP,
    }


def next_step(current, furthest):
    if current >= LAST_STEP:
        return OperationResult.failure("Already at the last step.")
    new = current + 1
    return OperationResult.success(wizard_state(new, max(furthest, new)))


def previous_step(current, furthest):
    if current <= FIRST_STEP:
        return OperationResult.failure("Already at the first step.")
    return OperationResult.success(wizard_state(current - 1, furthest))


def go_to_step(current, furthest, target):
    """Jump to a visited step, or to the one right after the furthest visited."""
    if get_step(target) is None:
        return OperationResult.failure(f"Unknown step: {target}")
    if target > furthest + 1:
        return OperationResult.failure(
            f"Step {target} is not reachable yet; complete step {furthest + 1} first."
        )
    return OperationResult.success(wizard_state(target, max(furthest, target)))
