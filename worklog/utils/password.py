from passlib.context import CryptContext
from worklog.config import settings

# worklog/utils/password.py

# Shared by account logins and share passwords. bcrypt only looks at the
# first 72 bytes of a secret.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.SHARE_BCRYPT_ROUNDS,
)

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # malformed stored hash
        return False
