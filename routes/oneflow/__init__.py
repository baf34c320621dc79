# routes/oneflow/__init__.py
"""
Oneflow Routes Package

Entry points into the contract sync engine:
- webhook.py: Oneflow webhook receiver
- imports.py: List and import existing Oneflow documents
- diagnostics.py: API connectivity and per-document mapping checks
"""

from flask import Blueprint

# Create the blueprint - all sub-modules will register routes on this
oneflow_bp = Blueprint('oneflow', __name__, url_prefix='/api/oneflow')

# Import all route modules AFTER blueprint creation
from . import webhook
from . import imports
from . import diagnostics
