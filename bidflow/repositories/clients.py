# bidflow/repositories/clients.py
from typing import Optional

from sqlalchemy.orm import Session

from bidflow.core.errors import ClientNotFound
from bidflow.models.client import Client
from bidflow.schemas.quote import ClientCreate


def create_client(db: Session, data: ClientCreate) -> Client:
    client = Client(name=data.name, email=data.email, phone=data.phone)
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def get_client(db: Session, client_id: str) -> Optional[Client]:
    return db.query(Client).filter(Client.id == client_id).first()


def require_client(db: Session, client_id: str) -> Client:
    client = get_client(db, client_id)
    if client is None:
        raise ClientNotFound(f"client {client_id} not found", client_id=client_id)
    return client
