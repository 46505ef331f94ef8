import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from practicehub.db.base import Base


class SubmissionStatus(str, enum.Enum):
    accepted = "accepted"
    wrong_answer = "wrong_answer"
    compile_error = "compile_error"
    execution_error = "execution_error"


class Submission(Base):
    """One row per graded attempt. Append-only."""

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="RESTRICT"), nullable=False, index=True)
    language = Column(String(50), nullable=False)
    success = Column(Boolean, nullable=False, default=False)
    status = Column(Enum(SubmissionStatus, values_callable=lambda e: [m.value for m in e]), nullable=False)
    passed = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Submission(id={self.id}, user_id={self.user_id}, problem_id={self.problem_id}, status={self.status})>"


class SolvedFact(Base):
    """First accepted solution per (user, problem). Never overwritten."""

    __tablename__ = "solved"
    __table_args__ = (UniqueConstraint("user_id", "problem_id", name="uq_solved_user_problem"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="RESTRICT"), nullable=False, index=True)
    code = Column(Text, nullable=False)
    language = Column(String(50), nullable=False)
    solved_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SolvedFact(user_id={self.user_id}, problem_id={self.problem_id}, solved_at={self.solved_at})>"
