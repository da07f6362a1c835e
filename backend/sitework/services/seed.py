from sqlalchemy.orm import Session
from sitework.db.session import SessionLocal
from sitework.core.config import settings
from sitework.core.logging import logger
from sitework.crud.employees import get_employee_by_login, create_employee
from sitework.schemas.admin import EmployeeCreateIn
from sitework.db.models.employee import Role
from sitework.crud.sites import list_sites, create_site
from sitework.schemas.sites import SiteCreate

def seed_demo(db: Session | None = None):
    own = db is None
    db = db or SessionLocal()
    try:
        if settings.DEMO_ADMIN_LOGIN and settings.DEMO_ADMIN_PASSWORD:
            u = get_employee_by_login(db, settings.DEMO_ADMIN_LOGIN)
            if not u:
                create_employee(db, EmployeeCreateIn(
                    login=settings.DEMO_ADMIN_LOGIN,
                    password=settings.DEMO_ADMIN_PASSWORD,
                    role=Role.admin,
                    full_name="Demo Admin",
                ))
                logger.info("seed_admin_created", login=settings.DEMO_ADMIN_LOGIN)
        # Create default site if none
        if not list_sites(db):
            create_site(db, SiteCreate(name="Demo Site", location="Dubai", description="Seeded demo site"))
            logger.info("seed_site_created")
    finally:
        if own:
            db.close()
