# Imports every model so Base.metadata and relationship() lookups see them all.
from settleup.db.session import Base
from settleup.models.user import User
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.settlement import Settlement

__all__ = ["Base", "User", "Group", "GroupMember", "Expense", "ExpenseSplit", "Settlement"]
