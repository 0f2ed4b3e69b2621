# WashDesk — Database Models
# Import all models here for SQLAlchemy discovery

from washdesk.models.tenant import Tenant                                   # noqa
from washdesk.models.customer import Customer                               # noqa
from washdesk.models.vehicle import Vehicle                                 # noqa
from washdesk.models.catalog import Service, Product, ServiceConsumption    # noqa
from washdesk.models.account import AccountCustomer, AccountVehicle         # noqa
from washdesk.models.appointment import Appointment, AppointmentItem, AppointmentStatus  # noqa
from washdesk.models.service_order import ServiceOrder, OrderItem, OrderStatus           # noqa
