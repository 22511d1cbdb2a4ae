"""Tab models - a triggerable group of URLs opened together."""
from sqlalchemy import String, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from bang.models.base import Base, TimestampMixin, UserMixin


class Tab(Base, TimestampMixin, UserMixin):
    __tablename__ = "tabs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    trigger: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="")

    items = relationship(
        "TabItem", back_populates="tab",
        order_by="TabItem.position",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "trigger", name="uq_tab_trigger"),
    )


class TabItem(Base, TimestampMixin):
    __tablename__ = "tab_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tab_id: Mapped[int] = mapped_column(
        ForeignKey("tabs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), default="")
    url: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)

    tab = relationship("Tab", back_populates="items")
