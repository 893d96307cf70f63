# Schemas package (re-export feature modules for stable imports)
from .common.common import *
from .prescriptions.prescription import *
from .appointments.appointment import *
from .schedule.schedule import *
