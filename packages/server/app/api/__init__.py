"""
API Router

Resource routers are mounted at the root; session auth comes from the
`sid` cookie on every route except /auth.
"""

from fastapi import APIRouter

from . import auth, details, logs, me, organizations, projects, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(me.router, prefix="/me", tags=["Users"])
router.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])
router.include_router(users.router, prefix="/organizations/{org_id}/users", tags=["Users"])
router.include_router(
    users.invitations_router, prefix="/organizations/{org_id}/invitations", tags=["Invitations"]
)
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(details.router, prefix="/details", tags=["Details"])
router.include_router(logs.router, prefix="/logs", tags=["Audit Log"])
