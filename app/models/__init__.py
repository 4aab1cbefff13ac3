from app.models.user import Role, User
from app.models.customer import Customer
from app.models.task import Task, TaskStatus
