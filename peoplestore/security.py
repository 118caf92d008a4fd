import random
from passlib.context import CryptContext

AVATAR_COUNT = 20

pwd_ctx = CryptContext(schemes=['bcrypt'], deprecated='auto')

def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)

def verify_password(password: str, hashed: str) -> bool:
    return pwd_ctx.verify(password, hashed)

def random_avatar_url() -> str:
    # avatars ship as 1.png .. 20.png
    return f'/api/images/avatars/{random.randint(1, AVATAR_COUNT)}.png'
