from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import models so they are registered with Base
from unimart.models import account, privacy  # noqa: E402,F401
