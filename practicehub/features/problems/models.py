import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from practicehub.db.base import Base


class Difficulty(str, enum.Enum):
    easy = "Easy"
    medium = "Medium"
    hard = "Hard"


class Visibility(str, enum.Enum):
    public = "public"
    hidden = "hidden"


class Problem(Base):
    __tablename__ = "problems"
    # ids of deleted problems are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    difficulty = Column(Enum(Difficulty, values_callable=lambda e: [m.value for m in e]), nullable=False)
    function_signature = Column(Text, nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    company = relationship("Company", back_populates="problems")
    test_cases = relationship(
        "TestCase",
        back_populates="problem",
        cascade="all, delete-orphan",
        order_by="TestCase.order_index",
    )

    def __repr__(self) -> str:
        return f"<Problem id={self.id} title={self.title} difficulty={self.difficulty}>"


class TestCase(Base):
    __tablename__ = "test_cases"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False, index=True)
    input = Column(Text, nullable=False, default="")
    expected_output = Column(Text, nullable=False)
    visibility = Column(Enum(Visibility, values_callable=lambda e: [m.value for m in e]), nullable=False, default=Visibility.hidden)
    order_index = Column(Integer, nullable=False, default=0)

    problem = relationship("Problem", back_populates="test_cases")

    def __repr__(self) -> str:
        return f"<TestCase id={self.id} problem_id={self.problem_id} order={self.order_index}>"
