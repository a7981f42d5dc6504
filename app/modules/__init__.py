"""Domain modules package."""

from app.modules.ads import models as ads_models  # noqa: F401
from app.modules.audit import models as audit_models  # noqa: F401
from app.modules.categories import models as categories_models  # noqa: F401
from app.modules.identity import models as identity_models  # noqa: F401
from app.modules.notifications import models as notifications_models  # noqa: F401
from app.modules.permissions import models as permissions_models  # noqa: F401
from app.modules.reports import models as reports_models  # noqa: F401
