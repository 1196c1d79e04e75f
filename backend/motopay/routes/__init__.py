from motopay.routes.payment import router as payment_router
from motopay.routes.compliance import router as compliance_router
from motopay.routes.vehicle import router as vehicle_router
from motopay.routes.agent import router as agent_router
from motopay.routes.admin import router as admin_router

__all__ = ["payment_router", "compliance_router", "vehicle_router", "agent_router", "admin_router"]
