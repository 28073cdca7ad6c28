from sqlalchemy import Boolean, Column, Integer, Text
from signpad.database import Base


class FormSubmission(Base):
    __tablename__ = "form_submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    company = Column(Text)
    signature_method = Column(Text, nullable=False)
    signature_data = Column(Text)
    signature_file_png = Column(Text)
    signature_file_webp = Column(Text)
    signature_file_svg = Column(Text)
    agree_terms = Column(Boolean, nullable=False, default=False)
    ip_address = Column(Text)
    user_agent = Column(Text)
    submitted_at = Column(Text, nullable=False)
