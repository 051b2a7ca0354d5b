"""Status board: tasks partitioned into fixed status columns."""

from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from models import BoardCard, TaskStatus

COLUMN_TITLES = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}


class Column(BaseModel):
    id: TaskStatus
    title: str
    cards: List[BoardCard] = []


class Board:
    def __init__(self, cards: Iterable[BoardCard] = ()):
        self.columns: Dict[TaskStatus, List[BoardCard]] = {s: [] for s in TaskStatus}
        for card in cards:
            self.columns[card.status].append(card)

    def find(self, task_id: str) -> Optional[BoardCard]:
        for cards in self.columns.values():
            for card in cards:
                if card.task_id == task_id:
                    return card
        return None

    def move(
        self,
        task_id: str,
        destination: TaskStatus,
        commit: Callable[[str, TaskStatus], object],
    ) -> bool:
        """Move a card to another column once ``commit`` has stored the new status.

        Returns False when there is nothing to move. If ``commit`` raises, the
        board is left as it was and the error propagates.
        """
        destination = TaskStatus(destination)
        card = self.find(task_id)
        if card is None or card.status == destination:
            return False

        commit(task_id, destination)

        self.columns[card.status] = [
            c for c in self.columns[card.status] if c.task_id != task_id
        ]
        self.columns[destination].append(card.model_copy(update={"status": destination}))
        return True

    def as_columns(self) -> List[Column]:
        return [
            Column(id=status, title=COLUMN_TITLES[status], cards=list(cards))
            for status, cards in self.columns.items()
        ]


def build_board(cards: Iterable[BoardCard]) -> Board:
    return Board(cards)
