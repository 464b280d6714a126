# Authentication module

from abroad_api.modules.auth.dependencies import (
    SessionContext,
    get_current_session,
    get_current_principal,
    require_admin_or_superadmin,
    require_superadmin,
    require_student,
)
