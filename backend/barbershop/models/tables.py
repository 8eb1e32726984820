from sqlalchemy import Column, Float, ForeignKey, Index, Integer, Table, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Services(Base):
    __tablename__ = 'services'

    name = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)

    appointments = relationship('Appointments', back_populates='service')


class Barbers(Base):
    __tablename__ = 'barbers'

    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    subscription_capacity = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    appointments = relationship('Appointments', back_populates='barber')
    time_off = relationship('BarberTimeOff', back_populates='barber')


t_barber_services = Table(
    'barber_services', metadata,
    Column('barber_id', ForeignKey('barbers.id', ondelete='CASCADE'), nullable=False),
    Column('service_id', ForeignKey('services.id', ondelete='CASCADE'), nullable=False),
    UniqueConstraint('barber_id', 'service_id')
)


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        # Storage-level guard: one live appointment per barber start time
        Index(
            'uq_appointments_barber_slot',
            'barber_id', 'appointment_date', 'start_time',
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
        Index('ix_appointments_date', 'appointment_date'),
    )

    service_id = Column(ForeignKey('services.id'), nullable=False)
    barber_id = Column(ForeignKey('barbers.id', ondelete='CASCADE'), nullable=False)
    appointment_date = Column(Text, nullable=False)  # YYYY-MM-DD
    start_time = Column(Text, nullable=False)  # HH:MM
    end_time = Column(Text, nullable=False)  # HH:MM
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    is_subscription_booking = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    client_id = Column(Integer)
    notes = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    barber = relationship('Barbers', back_populates='appointments')
    service = relationship('Services', back_populates='appointments')


class BarberTimeOff(Base):
    __tablename__ = 'barber_time_off'

    barber_id = Column(ForeignKey('barbers.id', ondelete='CASCADE'), nullable=False)
    start_date = Column(Text, nullable=False)
    end_date = Column(Text, nullable=False)
    type = Column(Text, nullable=False, server_default=text("'day_off'"))  # day_off / vacation / block
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    reason = Column(Text)

    barber = relationship('Barbers', back_populates='time_off')


class SystemSettings(Base):
    __tablename__ = 'system_settings'

    setting_key = Column(Text, nullable=False, unique=True)
    id = Column(Integer, primary_key=True)
    setting_value = Column(Text)


class ClientSubscriptions(Base):
    __tablename__ = 'client_subscriptions'

    client_id = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'active'"))
    current_period_end = Column(Text, nullable=False)  # ISO datetime
    id = Column(Integer, primary_key=True)
