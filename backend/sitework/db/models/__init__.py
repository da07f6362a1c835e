# import all models for Alembic
from sitework.db.models.employee import Employee
from sitework.db.models.site import Site
from sitework.db.models.milestone import Milestone
from sitework.db.models.phase import Phase
from sitework.db.models.task import Task, task_assignment
from sitework.db.models.ledger import LedgerTransaction
from sitework.db.models.material_request import MaterialRequest
from sitework.db.models.notification import Notification
