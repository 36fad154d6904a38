# VDC — Database Models
# Import all models here for SQLAlchemy discovery

from vdc.models.vehicle import VehicleRecord                                      # noqa
from vdc.models.catalog import VehicleCatalog                                     # noqa
from vdc.models.label import LabelRecord                                          # noqa
from vdc.models.interface import InboundInterfaceRecord, OutboundInterfaceFlag    # noqa
from vdc.models.api_log import ApiLog                                             # noqa
from vdc.models.api_user import ApiUser                                           # noqa
