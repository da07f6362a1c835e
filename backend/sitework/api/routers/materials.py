from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sitework.core.deps import get_db, get_current_user, get_dispatcher
from sitework.schemas.materials import (
    MaterialActionOut,
    MaterialListOut,
    MaterialRequestIn,
    MaterialRequestOut,
    MaterialStatusIn,
)
from sitework.services.materials import create_request, list_requests, mark_received, material_view, set_status
from sitework.services.notifications import Outcome

router = APIRouter()


def _action_out(outcome: Outcome) -> MaterialActionOut:
    return MaterialActionOut(message=outcome.message, request=MaterialRequestOut(**material_view(outcome.entity)))


@router.get("", response_model=MaterialListOut)
def get_materials(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return MaterialListOut(requests=[MaterialRequestOut(**material_view(r)) for r in list_requests(db, user)])


@router.post("", response_model=MaterialActionOut, status_code=201)
def post_material(
    data: MaterialRequestIn,
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    user=Depends(get_current_user),
):
    return _action_out(create_request(db, data, user, dispatcher))


@router.put("/{request_id}/status", response_model=MaterialActionOut)
def put_status(
    request_id: int,
    data: MaterialStatusIn,
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    user=Depends(get_current_user),
):
    return _action_out(set_status(db, request_id, data, user, dispatcher))


@router.put("/{request_id}/received", response_model=MaterialActionOut)
def put_received(request_id: int, db: Session = Depends(get_db), dispatcher=Depends(get_dispatcher), user=Depends(get_current_user)):
    return _action_out(mark_received(db, request_id, user, dispatcher))
