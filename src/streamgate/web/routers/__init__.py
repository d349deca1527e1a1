from streamgate.web.routers.files import router as files_router
from streamgate.web.routers.pay import router as pay_router
from streamgate.web.routers.stream import router as stream_router

__all__ = [
    "files_router",
    "pay_router",
    "stream_router",
]
