import uuid
from dataclasses import dataclass, field
from enum import Enum


class QuestionType(str, Enum):
    RADIO = "radio"
    RADIO_ATM1D = "radio-atm1d"
    CHECKBOX = "checkbox"
    SELECT = "select"
    NUMBER = "number"
    TEXT = "text"
    TEXTAREA = "textarea"
    RATING = "rating"
    PIPE = "pipe"


QUESTION_TYPES = [t.value for t in QuestionType]


def new_question_id():
    return "q" + uuid.uuid4().hex[:12]


def split_lines(value):
    if isinstance(value, str):
        value = value.splitlines()
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass
class Question:
    label: str = ""
    secondary_label: str = ""
    title: str = ""
    type: str = QuestionType.RADIO.value
    rows: list = field(default_factory=list)
    cols: list = field(default_factory=list)
    comment: str = ""
    id: str = field(default_factory=new_question_id)


# === CODE BLOCK: Question collection ===
class QuestionList:
    """Ordered, explicitly owned collection of questions.

    Position matters: row order inside a question and question order inside
    the list are both preserved into the generated XML.
    """

    EDITABLE_FIELDS = ("label", "secondary_label", "title", "type", "rows", "cols", "comment")

    def __init__(self, questions=None):
        self._items = list(questions or [])

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def append(self, question):
        if any(q.id == question.id for q in self._items):
            raise ValueError(f"duplicate question id {question.id}")
        self._items.append(question)
        return question

    def add_blank(self):
        return self.append(Question())

    def index_of(self, question_id):
        for idx, q in enumerate(self._items):
            if q.id == question_id:
                return idx
        raise KeyError(question_id)

    def get(self, question_id):
        return self._items[self.index_of(question_id)]

    def edit(self, question_id, **changes):
        unknown = set(changes) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"cannot edit fields: {', '.join(sorted(unknown))}")
        if "type" in changes and changes["type"] not in QUESTION_TYPES:
            raise ValueError(f"unknown question type {changes['type']!r}")

        q = self.get(question_id)
        for name, value in changes.items():
            if name in ("rows", "cols"):
                value = split_lines(value)
            elif name != "title":
                # title may hold markup and whitespace the author wants kept
                value = (value or "").strip()
            setattr(q, name, value)
        return q

    def _swap(self, i, j):
        self._items[i], self._items[j] = self._items[j], self._items[i]

    def move_up(self, index):
        if index <= 0 or index >= len(self._items):
            return False
        self._swap(index - 1, index)
        return True

    def move_down(self, index):
        if index < 0 or index >= len(self._items) - 1:
            return False
        self._swap(index, index + 1)
        return True

    def delete(self, question_id):
        return self._items.pop(self.index_of(question_id))
