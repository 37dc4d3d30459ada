from fastapi import Depends, HTTPException, Request, status
import logging

logger = logging.getLogger(__name__)

USERS_READ = "users:read"
USERS_MANAGE = "users:manage"
LOANS_MANAGE = "loans:manage"
APPLICATIONS_REVIEW = "applications:review"


class AccessPolicy:
    """Decides whether a request may use an administrative capability."""

    async def allows(self, request: Request, capability: str) -> bool:
        raise NotImplementedError


class AllowAllPolicy(AccessPolicy):
    # No authentication exists yet, so every capability is granted
    async def allows(self, request: Request, capability: str) -> bool:
        logger.debug("Granting %s for %s %s", capability, request.method, request.url.path)
        return True


_default_policy = AllowAllPolicy()


def get_access_policy() -> AccessPolicy:
    return _default_policy


# Builds a route dependency that rejects the request with 403 unless the policy grants the capability
def require_capability(capability: str):
    async def _check(request: Request, policy: AccessPolicy = Depends(get_access_policy)) -> None:
        if not await policy.allows(request, capability):
            logger.warning(f"Capability {capability} denied for {request.method} {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"message": "Forbidden"},
            )

    return _check
