from typing import Annotated, cast

from fastapi import Depends, Request

from streamgate.app import App
from streamgate.core.modules.payment.models import ResourceDescriptor


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_referer(request: Request) -> str | None:
    """Referer of the request, falling back to Origin; None when neither is sent."""
    return request.headers.get("referer") or request.headers.get("origin") or None


async def get_resource(request: Request) -> ResourceDescriptor:
    """Describe the requested resource by method and public URL (proxy-aware)."""
    scheme = request.headers.get("x-forwarded-proto", request.url.scheme)
    host = request.headers.get("host", request.url.netloc)
    return ResourceDescriptor(method=request.method, url=f"{scheme}://{host}{request.url.path}")


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
RefererDep = Annotated[str | None, Depends(get_referer)]
ResourceDep = Annotated[ResourceDescriptor, Depends(get_resource)]
