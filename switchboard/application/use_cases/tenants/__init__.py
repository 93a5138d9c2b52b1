from switchboard.application.use_cases.tenants.tenant_service import TenantService

__all__ = ["TenantService"]
