from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sitework.api.views import site_out, transaction_out, usage_out
from sitework.core.deps import get_db, get_current_user, get_budget_policy, require_roles
from sitework.crud.phases import list_phases
from sitework.crud.sites import create_site, get_site, list_sites, update_site
from sitework.db.models.employee import Role
from sitework.db.models.site import SiteStatus
from sitework.schemas.ledger import (
    LedgerOut,
    LedgerStats,
    PhaseFinancialRow,
    PhaseFinancialsOut,
    TransactionCreatedOut,
    TransactionIn,
)
from sitework.schemas.materials import MaterialListOut, MaterialRequestOut
from sitework.schemas.milestones import MilestoneListOut, MilestoneOut
from sitework.schemas.sites import SiteCreate, SiteOut, SiteUpdate
from sitework.schemas.tasks import PhaseOut
from sitework.services.budget import phase_financials
from sitework.services.ledger import BudgetPolicy, list_transactions, record_transaction, site_totals
from sitework.services.materials import list_requests, material_view
from sitework.services.milestones import list_site_milestones, milestone_view
from sitework.services.permissions import Op, authorize
from sitework.services.phases import phase_views

router = APIRouter()


def _site_or_404(db: Session, site_id: int):
    s = get_site(db, site_id)
    if not s:
        raise HTTPException(status_code=404, detail="Site not found")
    return s


@router.get("", response_model=list[SiteOut])
def get_sites(status: SiteStatus | None = None, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    return [site_out(s) for s in list_sites(db, status.value if status else None)]


@router.post("", response_model=SiteOut)
def post_site(data: SiteCreate, db: Session = Depends(get_db), user=Depends(require_roles(Role.admin))):
    authorize(user, Op.site_write)
    return site_out(create_site(db, data))


@router.put("/{site_id}", response_model=SiteOut)
def put_site(
    site_id: int,
    data: SiteUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_roles(Role.admin)),
):
    authorize(user, Op.site_write)
    s = _site_or_404(db, site_id)
    return site_out(update_site(db, s, data))


@router.get("/{site_id}/phases", response_model=list[PhaseOut])
def get_site_phases(site_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    _site_or_404(db, site_id)
    return [PhaseOut(**v) for v in phase_views(db, list_phases(db, site_id))]


@router.get("/{site_id}/phases/financials", response_model=PhaseFinancialsOut)
def get_phase_financials(site_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    _site_or_404(db, site_id)
    rows = phase_financials(db, site_id)
    return PhaseFinancialsOut(phases=[
        PhaseFinancialRow(
            id=r["id"],
            name=r["name"],
            order_num=r["order_num"],
            budget=float(r["budget"]),
            used_amount=float(r["used_amount"]),
            remaining=float(r["remaining"]),
            over_budget=r["over_budget"],
        )
        for r in rows
    ])


@router.get("/{site_id}/transactions", response_model=LedgerOut)
def get_transactions(site_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    _site_or_404(db, site_id)
    totals = site_totals(db, site_id)
    return LedgerOut(
        transactions=[transaction_out(tx) for tx in list_transactions(db, site_id)],
        stats=LedgerStats(
            total_in=float(totals.total_in),
            total_out=float(totals.total_out),
            balance=float(totals.balance),
        ),
    )


@router.post("/{site_id}/transactions", response_model=TransactionCreatedOut, status_code=201)
def post_transaction(
    site_id: int,
    data: TransactionIn,
    db: Session = Depends(get_db),
    policy: BudgetPolicy = Depends(get_budget_policy),
    user=Depends(get_current_user),
):
    result = record_transaction(db, site_id, data, user, policy)
    return TransactionCreatedOut(
        message="Transaction added",
        transaction=transaction_out(result.transaction),
        budget=usage_out(result.usage) if result.usage else None,
        warning=result.warning,
    )


@router.get("/{site_id}/materials", response_model=MaterialListOut)
def get_site_materials(site_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    _site_or_404(db, site_id)
    return MaterialListOut(requests=[MaterialRequestOut(**material_view(r)) for r in list_requests(db, user, site_id)])


@router.get("/{site_id}/milestones", response_model=MilestoneListOut)
def get_site_milestones(site_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    _site_or_404(db, site_id)
    return MilestoneListOut(milestones=[MilestoneOut(**milestone_view(db, m)) for m in list_site_milestones(db, site_id)])
