"""
Authentication provider seam.
The portal only needs three things from an identity store: create an
identity, verify a password, and replace a password. LocalAuthProvider keeps
hashed credentials in the portal database; another store can be swapped in
through `get_auth_provider`.
"""
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash, check_password_hash

from models.users import AuthIdentity


class AuthProvider:
    def create_identity(self, password: str) -> int:
        raise NotImplementedError

    def verify(self, auth_id: int, password: str) -> bool:
        raise NotImplementedError

    def set_password(self, auth_id: int, password: str) -> None:
        raise NotImplementedError


class LocalAuthProvider(AuthProvider):
    def __init__(self, db: Session):
        self.db = db

    def create_identity(self, password: str) -> int:
        identity = AuthIdentity(password_hash=generate_password_hash(password))
        self.db.add(identity)
        self.db.flush()
        return identity.id

    def verify(self, auth_id: int, password: str) -> bool:
        identity = self.db.get(AuthIdentity, auth_id)
        if identity is None:
            return False
        return check_password_hash(identity.password_hash, password)

    def set_password(self, auth_id: int, password: str) -> None:
        identity = self.db.get(AuthIdentity, auth_id)
        if identity is None:
            raise LookupError(f"Auth identity {auth_id} not found")
        identity.password_hash = generate_password_hash(password)


def get_auth_provider(db: Session) -> AuthProvider:
    return LocalAuthProvider(db)
