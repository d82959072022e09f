from typing import Annotated

from fastapi import Depends, Request

from services.realtime import InMemoryEventBroker


def get_event_broker(request: Request) -> InMemoryEventBroker:
    """The application's broker, created in the lifespan hook."""
    broker: InMemoryEventBroker | None = getattr(request.app.state, "event_broker", None)
    if broker is None:
        broker = InMemoryEventBroker()
        request.app.state.event_broker = broker
    return broker


Broker = Annotated[InMemoryEventBroker, Depends(get_event_broker)]
