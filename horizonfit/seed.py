# Startup data: the bootstrap admin and the default DIY task checklist.
import logging

from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .database import SessionLocal
from . import models
from .zones import MAX_ZONE

logger = logging.getLogger(__name__)

# (category, title, description, icon); copied into every zone that has no templates yet
DEFAULT_TASKS = [
    (models.TaskCategory.nutrition, "Eat a protein-rich breakfast", "Include eggs, dal, paneer or yogurt in your first meal.", "utensils"),
    (models.TaskCategory.exercise, "Walk for 30 minutes", "Brisk pace, any time of the day.", "footprints"),
    (models.TaskCategory.hydration, "Drink your water target", "Spread your recommended intake across the day.", "droplet"),
    (models.TaskCategory.sleep, "Lights out on time", "Go to bed at your recommended bedtime.", "moon"),
    (models.TaskCategory.mindset, "Ten minutes of mindfulness", "Meditation or breathing practice.", "brain"),
]


def seed_default_tasks(db) -> int:
    """Adds DEFAULT_TASKS to zones without any template. Returns the number created."""
    created = 0
    for zone_number in range(1, MAX_ZONE + 1):
        exists = db.query(models.DIYTaskTemplate).filter(models.DIYTaskTemplate.zone_number == zone_number).first()
        if exists:
            continue
        for order, (category, title, description, icon) in enumerate(DEFAULT_TASKS):
            db.add(models.DIYTaskTemplate(
                zone_number=zone_number,
                category=category,
                title=title,
                description=description,
                icon=icon,
                order=order,
                is_active=True,
            ))
            created += 1
    db.commit()
    return created


def create_or_update_admin(db) -> None:
    """
    Upserts the bootstrap admin from SUPER_ADMIN_* settings.
    Imports are done locally to keep security out of the import graph of models.
    """
    from .security import get_password_hash, verify_password

    settings = get_settings()
    if not settings.super_admin_password:
        logger.warning("SUPER_ADMIN_PASSWORD not set. Skipping admin user setup.")
        return

    admin = db.query(models.User).filter(models.User.username == settings.super_admin_username).first()
    if admin:
        admin.role = models.UserRole.admin
        admin.is_active = True
        if not verify_password(settings.super_admin_password, admin.password_hash):
            admin.password_hash = get_password_hash(settings.super_admin_password)
            logger.info("Admin user password has been updated on startup to match settings.")
        db.commit()
        logger.info("Admin user verified.")
        return

    db.add(models.User(
        username=settings.super_admin_username,
        email=settings.super_admin_email,
        full_name="Administrator",
        password_hash=get_password_hash(settings.super_admin_password),
        role=models.UserRole.admin,
        is_active=True,
    ))
    db.commit()
    logger.info(f"Admin user '{settings.super_admin_username}' created.")


def run_startup_seed() -> None:
    settings = get_settings()
    db = SessionLocal()
    try:
        create_or_update_admin(db)
        if settings.seed_default_tasks:
            created = seed_default_tasks(db)
            if created:
                logger.info(f"Seeded {created} default DIY task template(s).")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"CRITICAL: Error during startup seeding: {e}")
        raise
    finally:
        db.close()
