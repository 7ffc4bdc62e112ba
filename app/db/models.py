# app/db/models.py
# importe tous les modèles pour que Base.metadata soit complet
from app.modules.users.models import User  # noqa: F401
from app.modules.clients.models import Client  # noqa: F401
from app.modules.staff.models import StaffProfile, Rating  # noqa: F401
from app.modules.missions.models import Mission, MissionUpdate, Comment  # noqa: F401
from app.modules.payments.models import Payment  # noqa: F401
