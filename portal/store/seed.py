"""
Seed data used when no snapshot exists or the stored one is unreadable.
"""

from decimal import Decimal

from portal.models.blog import BlogPost, PostStatus
from portal.models.records import (
    Labor,
    LaborRateType,
    Material,
    MaterialCategory,
    MaterialUnit,
    Project,
    ProjectData,
    StorageLocation,
    Task,
    TaskStatus,
    TaskType,
    new_record_id,
)


PROJECTS = [
    Project(id="project-vincente", name="Vince's House"),
    Project(id="project-elnido", name="El Nido"),
    Project(id="project-farm", name="Lumambong Farm"),
    Project(id="project-properties", name="Properties"),
]


def _vincente_tasks() -> list[Task]:
    rows = [
        ("install hardiflex then paint white", TaskType.FINISH, TaskStatus.IN_PROGRESS, "2025-09-02", False),
        ("install metal furring after paint", TaskType.STRUCTURE, TaskStatus.IN_PROGRESS, "2025-09-02", False),
        ("run wire in ground", TaskType.MEP, TaskStatus.IN_PROGRESS, "2025-09-02", False),
        ("paint walls", TaskType.FINISH, TaskStatus.IN_PROGRESS, "2025-09-02", False),
        ("trim coco trees", TaskType.SITE_PREP, TaskStatus.DONE, "2025-09-01", True),
        ("fix leak in roof", TaskType.STRUCTURE, TaskStatus.DONE, "2025-08-30", True),
        ("Front door sealant", TaskType.FINISH, TaskStatus.DONE, "2025-08-29", True),
        ("Living room window seal", TaskType.FINISH, TaskStatus.DONE, "2025-08-25", True),
    ]
    return [
        Task(
            id=new_record_id("task"),
            project_id="project-vincente",
            name=name,
            type=task_type,
            status=status,
            due_date=due,
            order=order,
            paid=paid,
        )
        for order, (name, task_type, status, due, paid) in enumerate(rows)
    ]


def _vincente_labor() -> list[Labor]:
    days = [
        ("JR", "2025-08-29", True),
        ("Leo", "2025-08-29", True),
        ("JR", "2025-09-02", True),
        ("Leo", "2025-09-02", True),
        ("JR", "2025-09-05", True),
        ("Leo", "2025-09-05", True),
        ("Boyy", "2025-09-08", False),
        ("JR", "2025-09-08", False),
    ]
    return [
        Labor(
            id=new_record_id("labor"),
            project_id="project-vincente",
            crew_role="General Laborer",
            workers=worker,
            rate_type=LaborRateType.HOURLY,
            rate=Decimal("62.5"),
            qty=Decimal("8"),
            cost=Decimal("500"),
            supplier="Local",
            start_date=day,
            end_date=day,
            paid=paid,
        )
        for worker, day, paid in days
    ]


def _vincente_materials() -> list[Material]:
    rows = [
        ("Primer Epoxy Paint set", 2, 450),
        ("Roll Brush #2", 6, 55),
        ("White Wall Paint", 1, 700),
    ]
    return [
        Material(
            id=new_record_id("material"),
            project_id="project-vincente",
            item=item,
            category=MaterialCategory.FINISHES,
            unit=MaterialUnit.PIECE,
            qty=Decimal(qty),
            unit_cost=Decimal(unit_cost),
            total_cost=Decimal(qty * unit_cost),
            supplier="Local Hardware",
            lead_time_days=1,
            delivery_eta="2025-09-01",
        )
        for item, qty, unit_cost in rows
    ]


def seed_projects() -> dict[str, ProjectData]:
    """Fresh seed data with newly generated ids."""
    return {
        "project-vincente": ProjectData(
            tasks=_vincente_tasks(),
            labor=_vincente_labor(),
            materials=_vincente_materials(),
        ),
        "project-elnido": ProjectData(
            tasks=[
                Task(
                    id=new_record_id("task"),
                    project_id="project-elnido",
                    name="Survey Land Plot A",
                    type=TaskType.SITE_PREP,
                    status=TaskStatus.DONE,
                    owner="David",
                    start_date="2025-01-10",
                    due_date="2025-01-15",
                    est_hours=Decimal("40"),
                    cost=Decimal("50000"),
                    tags=["survey", "legal"],
                    order=1,
                    paid=True,
                ),
                Task(
                    id=new_record_id("task"),
                    project_id="project-elnido",
                    name="Architectural Design Draft",
                    type=TaskType.DESIGN,
                    status=TaskStatus.IN_PROGRESS,
                    owner="John",
                    start_date="2025-01-16",
                    due_date="2025-02-28",
                    est_hours=Decimal("120"),
                    cost=Decimal("250000"),
                    tags=["design"],
                    order=2,
                ),
            ],
            materials=[
                Material(
                    id=new_record_id("material"),
                    project_id="project-elnido",
                    item="Rebar #10",
                    category=MaterialCategory.STEEL,
                    unit=MaterialUnit.TON,
                    qty=Decimal("5"),
                    unit_cost=Decimal("50000"),
                    total_cost=Decimal("250000"),
                    supplier="Manila Steel",
                    lead_time_days=14,
                    delivery_eta="2025-03-15",
                    location=StorageLocation.WAREHOUSE,
                ),
            ],
        ),
        "project-farm": ProjectData(
            tasks=[
                Task(
                    id=new_record_id("task"),
                    project_id="project-farm",
                    name="Install Irrigation System",
                    type=TaskType.MEP,
                    status=TaskStatus.BACKLOG,
                    owner="Leo",
                    start_date="2025-04-01",
                    due_date="2025-04-15",
                    est_hours=Decimal("80"),
                    cost=Decimal("150000"),
                    tags=["water", "farming"],
                    order=1,
                    notes="Phase 1: Main lines",
                ),
            ],
            labor=[
                Labor(
                    id=new_record_id("labor"),
                    project_id="project-farm",
                    crew_role="Farm Hand",
                    workers="Farm Team",
                    rate_type=LaborRateType.DAILY,
                    rate=Decimal("500"),
                    qty=Decimal("10"),
                    cost=Decimal("5000"),
                    supplier="Local Coop",
                    start_date="2025-03-20",
                    end_date="2025-03-20",
                    notes="Clearing land",
                    paid=True,
                ),
            ],
        ),
        "project-properties": ProjectData(),
    }


def seed_blog_posts() -> list[BlogPost]:
    return [
        BlogPost(
            id="post-welcome",
            title="Breaking Ground in Palawan",
            author="Palawan Collective",
            publish_date="2025-09-01",
            status=PostStatus.PUBLISHED,
            excerpt="Our first build is under way at Vince's House.",
            content=(
                "Work at **Vince's House** started this month.\n\n"
                "The crew has sealed the doors and windows and is now painting "
                "the hardiflex ceiling.\nNext up: wiring and the metal furring."
            ),
            tags=["construction", "update"],
        ),
    ]
