import uuid
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
from formbuilder.config.database_config import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Form(Base):
    __tablename__ = "forms"

    form_id = Column(String(36), primary_key=True, default=_uuid)

    # Owner id issued by the auth service; users are not stored here
    user_id = Column(String(36), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    slug = Column(String(64), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    settings = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_public = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    sections = relationship(
        "FormSection",
        back_populates="form",
        order_by=lambda: [FormSection.order, FormSection.created_at],
    )


class FormSection(Base):
    __tablename__ = "form_sections"

    section_id = Column(String(36), primary_key=True, default=_uuid)
    form_id = Column(String(36), ForeignKey("forms.form_id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=1)
    conditional = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    form = relationship("Form", back_populates="sections")
    fields = relationship(
        "FormField",
        back_populates="section",
        order_by=lambda: [FormField.order, FormField.created_at],
    )


class FormField(Base):
    __tablename__ = "form_fields"
    __table_args__ = (
        UniqueConstraint("form_id", "name", name="uq_form_fields_form_id_name"),
    )

    field_id = Column(String(36), primary_key=True, default=_uuid)
    section_id = Column(String(36), ForeignKey("form_sections.section_id"), nullable=False, index=True)
    # Denormalized from the section so names can be unique per form
    form_id = Column(String(36), ForeignKey("forms.form_id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    label = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False)
    placeholder = Column(String(255), nullable=True)
    options = Column(JSON, nullable=True)
    validation = Column(JSON, nullable=True)
    order = Column(Integer, nullable=False, default=1)
    conditional = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    section = relationship("FormSection", back_populates="fields")


class FormEntry(Base):
    __tablename__ = "form_entries"

    entry_id = Column(String(36), primary_key=True, default=_uuid)
    form_id = Column(String(36), ForeignKey("forms.form_id"), nullable=False, index=True)
    submitter_id = Column(String(36), nullable=True, index=True)
    ip = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    values = relationship(
        "FormValue",
        back_populates="entry",
        order_by=lambda: FormValue.position,
    )


class FormValue(Base):
    __tablename__ = "form_values"

    value_id = Column(String(36), primary_key=True, default=_uuid)
    entry_id = Column(String(36), ForeignKey("form_entries.entry_id"), nullable=False, index=True)

    # No foreign key: values outlive the fields they answered
    field_id = Column(String(36), nullable=False, index=True)
    field_name = Column(String(255), nullable=False)
    value = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    entry = relationship("FormEntry", back_populates="values")
