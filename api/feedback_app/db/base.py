# api/feedback_app/db/base.py
from feedback_app.db.base_class import Base  # noqa: F401

# Import every module that defines tables so Base.metadata is complete
# (alembic autogenerate and create_all in tests rely on it).
from feedback_app.models import course  # noqa: F401
from feedback_app.models import faculty  # noqa: F401
from feedback_app.models import subject  # noqa: F401
from feedback_app.models import feedback_form  # noqa: F401
from feedback_app.models import response  # noqa: F401
