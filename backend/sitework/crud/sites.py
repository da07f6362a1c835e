from sqlalchemy.orm import Session
from sitework.db.models.site import Site
from sitework.schemas.sites import SiteCreate, SiteUpdate

def list_sites(db: Session, status: str | None = None):
    q = db.query(Site)
    if status:
        q = q.filter(Site.status == status)
    return q.order_by(Site.id).all()

def get_site(db: Session, site_id: int) -> Site | None:
    return db.get(Site, site_id)

def create_site(db: Session, data: SiteCreate) -> Site:
    s = Site(
        name=data.name.strip(),
        location=data.location,
        description=data.description,
        status=data.status.value,
        budget=data.budget,
        start_date=data.start_date,
        end_date=data.end_date,
    )
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def update_site(db: Session, s: Site, data: SiteUpdate) -> Site:
    if data.name:
        s.name = data.name.strip()
    for field in ("location", "description", "budget", "start_date", "end_date"):
        v = getattr(data, field)
        if v is not None:
            setattr(s, field, v)
    if data.status is not None:
        s.status = data.status.value
    db.commit()
    db.refresh(s)
    return s
