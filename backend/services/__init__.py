from backend.services.queue_service import QueueService, queue_service
from backend.services.whatsapp import WhatsAppService, whatsapp_service

__all__ = [
    "QueueService",
    "WhatsAppService",
    "queue_service",
    "whatsapp_service",
]
