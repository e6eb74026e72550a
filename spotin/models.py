import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


# ============================================================================
# PEOPLE
# ============================================================================


class StaffUser(Base):
    __tablename__ = "staff_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    # admin, ceo, operations, finance, hr, receptionist, barista,
    # community_manager, marketing, crm
    role = Column(String(50), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    client_code = Column(String(20), unique=True, index=True, nullable=False)  # C00001
    barcode = Column(String(20), unique=True, index=True, nullable=False)  # BC + 8 chars
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    full_name = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    job_title = Column(String(255), nullable=True)
    how_did_you_find_us = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=True)  # only for self-service portal accounts
    is_active = Column(Boolean, default=True, nullable=False)  # account enabled
    active = Column(Boolean, default=False, nullable=False)  # currently checked in
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    check_ins = relationship("CheckIn", back_populates="client", cascade="all, delete-orphan")
    memberships = relationship("ClientMembership", back_populates="client")
    tickets = relationship("ClientTicket", back_populates="client")
    line_items = relationship("SessionLineItem", back_populates="client")


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    status = Column(String(20), default="checked_in", nullable=False, index=True)  # checked_in, checked_out
    checked_in_at = Column(DateTime, nullable=False)
    checked_out_at = Column(DateTime, nullable=True)

    client = relationship("Client", back_populates="check_ins")


class CheckInLog(Base):
    __tablename__ = "check_in_logs"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    # checked_in, checked_out, auto_checked_out
    action = Column(String(30), nullable=False)
    scanned_barcode = Column(String(50), nullable=True)
    scanned_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    notes = Column(Text, nullable=True)
    timestamp = Column(DateTime, nullable=False, index=True)


# ============================================================================
# MEMBERSHIPS & TICKETS
# ============================================================================


class MembershipPlan(Base):
    __tablename__ = "membership_plans"

    id = Column(Integer, primary_key=True, index=True)
    plan_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    discount_percentage = Column(Float, default=0, nullable=False)
    perks = Column(JSON, default=list)
    duration_type = Column(String(20), nullable=False)  # weekly, monthly, 6months, annual
    price = Column(Float, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ClientMembership(Base):
    __tablename__ = "client_memberships"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("membership_plans.id"), nullable=True)
    # Plan terms are copied so later plan edits don't rewrite history
    plan_name = Column(String(255), nullable=False)
    discount_percentage = Column(Float, default=0, nullable=False)
    perks = Column(JSON, default=list)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    total_savings = Column(Float, default=0, nullable=False)
    receipt_id = Column(Integer, ForeignKey("receipts.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    client = relationship("Client", back_populates="memberships")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, default=0, nullable=False)
    includes_free_drink = Column(Boolean, default=False, nullable=False)
    duration_hours = Column(Integer, nullable=True)  # defaults to DAY_USE_TICKET_HOURS
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ClientTicket(Base):
    __tablename__ = "client_tickets"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False)
    ticket_name = Column(String(255), nullable=False)
    ticket_price = Column(Float, default=0, nullable=False)
    includes_free_drink = Column(Boolean, default=False, nullable=False)
    purchase_date = Column(DateTime, nullable=False)
    expiry_date = Column(DateTime, nullable=False, index=True)
    payment_method = Column(String(20), default="pending", nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    receipt_id = Column(Integer, ForeignKey("receipts.id"), nullable=True)
    free_drink_claimed = Column(Boolean, default=False, nullable=False)
    free_drink_claimed_at = Column(DateTime, nullable=True)
    claimed_drink_name = Column(String(255), nullable=True)
    free_drink_order_id = Column(Integer, ForeignKey("session_line_items.id"), nullable=True)
    assigned_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)

    client = relationship("Client", back_populates="tickets")


# ============================================================================
# CAFE: PRODUCTS, STOCK, ORDERS
# ============================================================================


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, index=True)  # hot_drinks, cold_drinks, food, ...
    price = Column(Float, default=0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    prep_time_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    ingredients = relationship(
        "ProductIngredient", back_populates="product", cascade="all, delete-orphan"
    )


class StockItem(Base):
    __tablename__ = "stock"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(30), nullable=False)  # g, ml, pcs
    category = Column(String(50), nullable=True)
    current_quantity = Column(Float, default=0, nullable=False)
    min_quantity = Column(Float, default=0, nullable=False)
    cost_per_unit = Column(Float, default=0, nullable=False)
    supplier = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_restocked_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ProductIngredient(Base):
    __tablename__ = "product_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    stock_id = Column(Integer, ForeignKey("stock.id"), nullable=False, index=True)
    quantity_needed = Column(Float, nullable=False)  # per one unit of product

    product = relationship("Product", back_populates="ingredients")
    stock_item = relationship("StockItem")


class SessionLineItem(Base):
    __tablename__ = "session_line_items"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)  # null for walk-in sales
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    price = Column(Float, default=0, nullable=False)  # unit price snapshot
    # pending -> preparing -> ready -> served -> completed; cancelled from any open state
    status = Column(String(20), default="pending", nullable=False, index=True)
    notes = Column(Text, nullable=True)
    receipt_id = Column(Integer, ForeignKey("receipts.id"), nullable=True, index=True)
    placed_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=True)

    client = relationship("Client", back_populates="line_items")
    product = relationship("Product")


class Receipt(Base):
    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True, index=True)
    receipt_number = Column(String(40), unique=True, index=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    # session, order, membership, day_use_ticket, event
    transaction_type = Column(String(30), nullable=False, index=True)
    line_items = Column(JSON, default=list)  # snapshot of what was billed
    amount = Column(Float, default=0, nullable=False)  # subtotal
    discount_amount = Column(Float, default=0, nullable=False)
    total_amount = Column(Float, default=0, nullable=False)
    payment_method = Column(String(20), nullable=False)  # cash, card, mobile
    status = Column(String(20), default="closed", nullable=False, index=True)  # closed, cancelled
    receipt_date = Column(DateTime, nullable=False, index=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    client = relationship("Client")
    items = relationship("SessionLineItem", foreign_keys=[SessionLineItem.receipt_id])


# ============================================================================
# EVENTS
# ============================================================================


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    event_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    capacity = Column(Integer, nullable=False)
    price = Column(Float, default=0, nullable=False)
    registered_attendees = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    registrations = relationship("EventRegistration", back_populates="event")


class EventRegistration(Base):
    __tablename__ = "event_registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    attendee_name = Column(String(255), nullable=False)
    attendee_email = Column(String(255), nullable=False, index=True)
    attendee_phone = Column(String(50), nullable=True)
    special_requests = Column(Text, nullable=True)
    status = Column(String(20), default="registered", nullable=False)  # registered, cancelled
    receipt_id = Column(Integer, ForeignKey("receipts.id"), nullable=True)
    registered_at = Column(DateTime, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)

    event = relationship("Event", back_populates="registrations")


# ============================================================================
# PAYROLL & EXPENSES
# ============================================================================


class PayrollEmployee(Base):
    __tablename__ = "payroll"

    id = Column(Integer, primary_key=True, index=True)
    employee_name = Column(String(255), nullable=False)
    employee_code = Column(String(50), unique=True, index=True, nullable=False)
    position = Column(String(120), nullable=False)
    department = Column(String(120), nullable=True)
    base_salary = Column(Float, default=0, nullable=False)
    bonuses = Column(Float, default=0, nullable=False)
    deductions = Column(Float, default=0, nullable=False)
    net_salary = Column(Float, default=0, nullable=False)  # base + bonuses - deductions
    payment_frequency = Column(String(20), default="monthly", nullable=False)
    bank_account = Column(String(100), nullable=True)
    tax_id = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    transactions = relationship("PayrollTransaction", back_populates="employee")


class PayrollTransaction(Base):
    __tablename__ = "payroll_transactions"

    id = Column(Integer, primary_key=True, index=True)
    payroll_id = Column(Integer, ForeignKey("payroll.id"), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    base_amount = Column(Float, default=0, nullable=False)
    bonuses = Column(Float, default=0, nullable=False)
    deductions = Column(Float, default=0, nullable=False)
    total_amount = Column(Float, default=0, nullable=False)
    payment_method = Column(String(30), default="bank_transfer", nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False, index=True)  # pending, paid
    paid_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    processed_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False)

    employee = relationship("PayrollEmployee", back_populates="transactions")


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    bills = relationship("Bill", back_populates="vendor_record")


class ExpenseCategory(Base):
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, nullable=False)


class Bill(Base):
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True)
    vendor = Column(String(255), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True, index=True)
    category = Column(String(50), nullable=False)  # rent, utilities, supplies, ...
    description = Column(Text, nullable=True)
    amount = Column(Float, nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending, paid
    paid_at = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("staff_users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False)

    vendor_record = relationship("Vendor", back_populates="bills")


# ============================================================================
# FEEDBACK
# ============================================================================


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    emoji = Column(String(8), nullable=False)
    comment = Column(Text, nullable=True)
    feedback_type = Column(String(30), default="checkout_satisfaction", nullable=False)
    visit_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    client = relationship("Client")
