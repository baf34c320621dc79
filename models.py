# models.py
import uuid
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def generate_uuid():
    return str(uuid.uuid4())


class Customer(db.Model):
    """A contract customer. Created by the provisioner when a contract is signed."""
    __tablename__ = 'customers'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    company_name = db.Column(db.String(255), nullable=False)
    org_number = db.Column(db.String(50), index=True)
    contact_person = db.Column(db.String(255))
    email = db.Column(db.String(255), index=True)
    phone = db.Column(db.String(50))
    address = db.Column(db.String(500))

    # Contract summary copied at creation time
    contract_start_date = db.Column(db.String(20))
    contract_length_months = db.Column(db.Integer)
    total_contract_value = db.Column(db.Numeric(12, 2))
    contract_description = db.Column(db.String(500))
    assigned_account_manager = db.Column(db.String(255))
    business_type = db.Column(db.String(100))
    contract_status = db.Column(db.String(20), nullable=False, default='active')  # active, ended
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow,
                           onupdate=datetime.utcnow)

    contracts = db.relationship('Contract', back_populates='customer', lazy=True)

    def __repr__(self):
        return f'<Customer {self.company_name}>'


class Contract(db.Model):
    """
    One Oneflow document (contract or offer), keyed by its Oneflow id.

    Written only through services.oneflow.contract_gateway.ContractGateway.
    """
    __tablename__ = 'contracts'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    oneflow_contract_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    source_type = db.Column(db.String(20), nullable=False, default='webhook')  # webhook, import
    type = db.Column(db.String(20), nullable=False, default='contract')  # contract, offer
    # draft, pending, signed, declined, active, ended, overdue
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    template_id = db.Column(db.String(50))

    # BeGone side
    begone_employee_name = db.Column(db.String(255))
    begone_employee_email = db.Column(db.String(255))
    contract_length = db.Column(db.String(50))
    start_date = db.Column(db.String(20))

    # Customer side
    contact_person = db.Column(db.String(255))
    contact_email = db.Column(db.String(255))
    contact_phone = db.Column(db.String(50))
    contact_address = db.Column(db.String(500))
    company_name = db.Column(db.String(255))
    organization_number = db.Column(db.String(50))

    # Agreement details
    agreement_text = db.Column(db.Text)
    total_value = db.Column(db.Numeric(12, 2))
    selected_products = db.Column(db.JSON)

    customer_id = db.Column(db.String(36), db.ForeignKey('customers.id', ondelete='SET NULL'),
                            nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    customer = db.relationship('Customer', back_populates='contracts')

    # Columns the sync engine may write from a mapped record
    SYNCED_COLUMNS = (
        'type', 'status', 'template_id',
        'begone_employee_name', 'begone_employee_email', 'contract_length', 'start_date',
        'contact_person', 'contact_email', 'contact_phone', 'contact_address',
        'company_name', 'organization_number',
        'agreement_text', 'total_value', 'selected_products',
    )

    def to_dict(self):
        return {
            'id': self.id,
            'oneflow_contract_id': self.oneflow_contract_id,
            'type': self.type,
            'status': self.status,
            'template_id': self.template_id,
            'company_name': self.company_name,
            'contact_person': self.contact_person,
            'contact_email': self.contact_email,
            'total_value': float(self.total_value) if self.total_value is not None else None,
            'customer_id': self.customer_id,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Contract {self.oneflow_contract_id} {self.type}/{self.status}>'


class OneflowSyncLog(db.Model):
    """
    Append-only record of every Oneflow webhook delivery.

    One row per inbound webhook call, never updated.
    """
    __tablename__ = 'oneflow_sync_log'

    # Status constants
    RECEIVED = 'received'
    VERIFIED = 'verified'
    PROCESSED = 'processed'
    ERROR = 'error'

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(500), nullable=False)
    oneflow_contract_id = db.Column(db.String(50), index=True)
    status = db.Column(db.String(20), nullable=False)
    details = db.Column(db.JSON)
    error_message = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    @classmethod
    def for_contract(cls, oneflow_contract_id, limit=50):
        """Most recent deliveries for one Oneflow document."""
        return cls.query.filter_by(
            oneflow_contract_id=str(oneflow_contract_id)
        ).order_by(cls.created_at.desc()).limit(limit).all()

    def __repr__(self):
        return f'<OneflowSyncLog {self.oneflow_contract_id} {self.status}>'
