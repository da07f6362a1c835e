from sitework.core.config import settings
from sitework.core.security import verify_password
from sitework.crud.employees import get_employee_by_login
from sitework.crud.sites import list_sites
from sitework.services.seed import seed_demo


def test_seed_is_idempotent(db):
    seed_demo(db)
    seed_demo(db)

    admin = get_employee_by_login(db, settings.DEMO_ADMIN_LOGIN)
    assert admin.is_admin
    assert verify_password(settings.DEMO_ADMIN_PASSWORD, admin.password_hash)
    assert [s.name for s in list_sites(db)] == ["Demo Site"]
