from .catalog import *  # noqa
from .manufacturing import *  # noqa

# Platform event-bus table (transactional outbox)
from app.events.outbox import *  # noqa
