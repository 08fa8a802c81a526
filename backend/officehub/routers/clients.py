from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core.deps import get_broadcaster, get_current_user
from officehub.db.session import get_db
from officehub.models.enums import RecordStatus
from officehub.models.user import User
from officehub.realtime.broadcaster import Broadcaster
from officehub.realtime.events import publish_pending
from officehub.schemas.base import MessageResponse
from officehub.schemas.client import ClientCreate, ClientRead, ClientUpdate, ConsultationCreate, ConsultationRead
from officehub.services import clients as client_service

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("", response_model=List[ClientRead])
def list_clients(
    client_status: Optional[RecordStatus] = Query(None, alias="status"),
    service_type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    progress_status: Optional[str] = Query(None),
    created_from: Optional[date] = Query(None),
    created_to: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ClientRead]:
    clients = client_service.list_clients(
        db,
        user=current_user,
        status=client_status,
        service_type=service_type,
        category=category,
        progress_status=progress_status,
        created_from=created_from,
        created_to=created_to,
        search=search,
    )
    return [ClientRead.model_validate(client) for client in clients]


@router.get("/{client_pk}", response_model=ClientRead)
def get_client(
    client_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ClientRead:
    return ClientRead.model_validate(client_service.get_client(db, client_pk=client_pk, user=current_user))


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    client_in: ClientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ClientRead:
    client = client_service.create_client(db, actor=current_user, data=client_in.model_dump())
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(client)
    return ClientRead.model_validate(client)


@router.put("/{client_pk}", response_model=ClientRead)
def update_client(
    client_pk: int,
    client_update: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ClientRead:
    client = client_service.get_client(db, client_pk=client_pk, user=current_user)
    client = client_service.update_client(
        db,
        client,
        actor=current_user,
        changes=client_update.model_dump(exclude_unset=True),
    )
    db.commit()
    db.refresh(client)
    return ClientRead.model_validate(client)


@router.delete("/{client_pk}", response_model=MessageResponse)
def delete_client(
    client_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    client = client_service.get_client(db, client_pk=client_pk, user=current_user)
    client_service.delete_client(db, client, actor=current_user)
    db.commit()
    return MessageResponse(message="Client deleted")


@router.get("/{client_pk}/consultations", response_model=List[ConsultationRead])
def list_consultations(
    client_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ConsultationRead]:
    client = client_service.get_client(db, client_pk=client_pk, user=current_user)
    return [ConsultationRead.model_validate(item) for item in client_service.list_consultations(db, client)]


@router.post(
    "/{client_pk}/consultations",
    response_model=ConsultationRead,
    status_code=status.HTTP_201_CREATED,
)
def add_consultation(
    client_pk: int,
    consultation_in: ConsultationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConsultationRead:
    client = client_service.get_client(db, client_pk=client_pk, user=current_user)
    consultation = client_service.add_consultation(
        db,
        client,
        actor=current_user,
        data=consultation_in.model_dump(),
    )
    db.commit()
    db.refresh(consultation)
    return ConsultationRead.model_validate(consultation)
