import logging

from paperbank.core.errors import AuthenticationError, ValidationError
from paperbank.core.security import hash_password, verify_password
from paperbank.models.orm import LinkStatus, Role, User
from paperbank.models.schemas import RegisterRequest
from paperbank.storage import Storage

logger = logging.getLogger(__name__)


def register_user(storage: Storage, payload: RegisterRequest) -> User:
    """Create an account.

    A teacher registering with an institution name gets that institution; a
    student naming a teacher gets a pending link awaiting that teacher.
    """
    email = payload.email.lower()
    if storage.get_user_by_email(email):
        raise ValidationError("User with this email already exists")

    teacher = None
    if payload.role == Role.STUDENT and payload.teacher_id is not None:
        teacher = storage.get_user(payload.teacher_id)
        if not teacher or teacher.role != Role.TEACHER.value:
            raise ValidationError("Selected teacher does not exist")

    user = storage.create_user(
        name=payload.name,
        email=email,
        password=hash_password(payload.password),
        role=payload.role.value,
        roll_number=payload.roll_number if payload.role == Role.STUDENT else None,
    )

    if payload.role == Role.TEACHER and payload.institution_name:
        institution = storage.create_institution(
            name=payload.institution_name,
            address=payload.institution_address or "",
            created_by_teacher_id=user.id,
        )
        user = storage.set_user_institution(user.id, institution.id)

    if teacher is not None:
        storage.create_link(teacher_id=teacher.id, student_id=user.id, status=LinkStatus.PENDING.value)
        logger.info(f"Student {user.id} requested to join teacher {teacher.id}")

    logger.info(f"Registered {user.role} {user.id}")
    return user


def authenticate(storage: Storage, email: str, password: str) -> User:
    user = storage.get_user_by_email(email.lower())
    if not user or not verify_password(password, user.password):
        logger.warning(f"Failed login for {email}")
        raise AuthenticationError("Invalid email or password")
    return user
