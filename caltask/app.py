"""Main PyQt application entry point."""
from __future__ import annotations

import locale
import logging
import math
import sys
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from PyQt6.QtCore import QDate, QPoint, Qt, QTime, pyqtSignal
from PyQt6.QtGui import QAction, QColor, QKeySequence
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QCheckBox,
    QComboBox,
    QDateEdit,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QStackedWidget,
    QTableWidget,
    QTableWidgetItem,
    QTimeEdit,
    QVBoxLayout,
    QWidget,
)

from .config import Settings
from .errors import PersistenceError
from .models import Category, Task, TaskDraft
from .normalize import (
    AllDayChange,
    CategoryChange,
    DateChange,
    DescriptionChange,
    DurationChange,
    FieldChange,
    PriorityChange,
    SetToday,
    TimeChange,
    TitleChange,
    apply_change,
)
from .projection import CalendarEvent, CalendarSettings, Interaction, move_to_day
from .storage import CsvTaskRepository
from .store import TaskStore
from .transactions import AddTask, ChangeField, DeleteTask, DropTask, Operation, ResizeTask, UpdateTask


logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    Category.PERSONAL: "Personal",
    Category.UNI: "University",
    Category.WORK: "Work",
    Category.BACKLOG: "Backlog",
}
_DRAG_HANDLE_TOLERANCE = 6
_EMPTY_CELL = QColor("white")
_OUTSIDE_MONTH_CELL = QColor("#f3f4f6")
_MONTH_WEEKS = 6


def dispatch_safely(store: TaskStore, operation: Operation) -> bool:
    """Send ``operation`` to the store; failures are reported via `sync_failed`."""
    try:
        store.dispatch(operation)
    except PersistenceError:
        return False
    return True


def find_event(store: TaskStore, task_id: str) -> Optional[CalendarEvent]:
    for event in store.events():
        if event.id == task_id:
            return event
    return None


def describe_schedule(task: Task) -> str:
    """Short date text for the sidebar, e.g. ``01.03.2024 (2h)``."""
    if task.due_date is None:
        return ""
    text = task.due_date.strftime("%d.%m.%Y")
    if task.is_all_day:
        return f"{text} (All day)"
    text = f"{text} {task.due_date:%H:%M}"
    if task.duration:
        text += f" ({task.duration:g}h)"
    return text


@dataclass(slots=True)
class DragState:
    task_id: str
    mode: str  # "move" or "resize"
    origin: Tuple[int, int]


class TaskListWidget(QWidget):
    """Sidebar with the ordered task list, category filter and quick add."""

    task_activated = pyqtSignal(str)

    def __init__(self, store: TaskStore, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.store = store
        self.filter_combo = QComboBox()
        self.filter_combo.addItem("All Categories", None)
        for category, label in CATEGORY_LABELS.items():
            self.filter_combo.addItem(label, category)
        self.list = QListWidget()
        self.list.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.list.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.title_edit = QLineEdit()
        self.title_edit.setPlaceholderText("Add new task...")
        self.category_combo = QComboBox()
        for category, label in CATEGORY_LABELS.items():
            self.category_combo.addItem(label, category)
        self.add_button = QPushButton("Add")
        self._build_layout()

        self.filter_combo.currentIndexChanged.connect(self.refresh)
        self.list.itemDoubleClicked.connect(self._activate_item)
        self.list.customContextMenuRequested.connect(self._show_context_menu)
        self.title_edit.returnPressed.connect(self.add_task)
        self.add_button.clicked.connect(self.add_task)
        store.tasks_changed.connect(self.refresh)
        self.refresh()

    def _build_layout(self) -> None:
        layout = QVBoxLayout(self)
        header = QHBoxLayout()
        header.addWidget(QLabel("Tasks"))
        header.addStretch(1)
        header.addWidget(self.filter_combo)
        layout.addLayout(header)
        layout.addWidget(self.list, 1)
        add_row = QHBoxLayout()
        add_row.addWidget(self.title_edit, 1)
        add_row.addWidget(self.add_button)
        layout.addLayout(add_row)
        layout.addWidget(self.category_combo)

    def selected_category(self) -> Optional[Category]:
        return self.filter_combo.currentData()

    def refresh(self, *_args: object) -> None:
        """Rebuild the list from the store in display order."""
        self.list.clear()
        for task in self.store.ordered(self.selected_category()):
            item = QListWidgetItem(self._item_text(task))
            item.setData(Qt.ItemDataRole.UserRole, task.id)
            item.setData(Qt.ItemDataRole.DecorationRole, QColor(task.color))
            if task.description:
                item.setToolTip(task.description)
            self.list.addItem(item)

    def _item_text(self, task: Task) -> str:
        title = f"{task.title}  [!]" if task.is_priority else task.title
        details = CATEGORY_LABELS[task.category]
        schedule = describe_schedule(task)
        if schedule:
            details = f"{details} • {schedule}"
        return f"{title}\n{details}"

    def task_ids(self) -> List[str]:
        return [self.list.item(row).data(Qt.ItemDataRole.UserRole) for row in range(self.list.count())]

    def add_task(self) -> None:
        """Create a task from the quick-add fields; blank titles are ignored."""
        draft = TaskDraft(title=self.title_edit.text(), category=self.category_combo.currentData())
        if not draft.has_title():
            return
        if dispatch_safely(self.store, AddTask(draft)):
            self.title_edit.clear()

    def delete_task(self, task_id: str) -> None:
        dispatch_safely(self.store, DeleteTask(task_id))

    def keyPressEvent(self, event):  # type: ignore[override]
        if event.key() == Qt.Key.Key_Delete:
            item = self.list.currentItem()
            if item is not None:
                self.delete_task(item.data(Qt.ItemDataRole.UserRole))
                return
        super().keyPressEvent(event)

    def _activate_item(self, item: QListWidgetItem) -> None:
        self.task_activated.emit(item.data(Qt.ItemDataRole.UserRole))

    def _show_context_menu(self, position: QPoint) -> None:
        """Provide quick row actions (edit/today/delete)."""
        item = self.list.itemAt(position)
        if item is None:
            return
        task_id = item.data(Qt.ItemDataRole.UserRole)
        menu = QMenu(self)
        edit_action = menu.addAction("Edit...")
        today_action = menu.addAction("Set to Today")
        menu.addSeparator()
        delete_action = menu.addAction("Delete")
        action = menu.exec(self.list.viewport().mapToGlobal(position))
        if action == edit_action:
            self.task_activated.emit(task_id)
        elif action == today_action:
            dispatch_safely(self.store, ChangeField(task_id, SetToday()))
        elif action == delete_action:
            self.delete_task(task_id)


class TaskEditorDialog(QDialog):
    """Edits a working copy of one task; Save commits it as a whole."""

    def __init__(self, store: TaskStore, task: Task, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Edit Task")
        self.store = store
        self.task = task
        self._loading = False

        self.title_edit = QLineEdit()
        self.description_edit = QPlainTextEdit()
        self.description_edit.setPlaceholderText("Add task description...")
        self.category_combo = QComboBox()
        for category, label in CATEGORY_LABELS.items():
            self.category_combo.addItem(label, category)
        self.priority_check = QCheckBox("Priority")
        self.scheduled_check = QCheckBox("Scheduled")
        self.date_edit = QDateEdit()
        self.date_edit.setCalendarPopup(True)
        self.date_edit.setDisplayFormat("dd.MM.yyyy")
        self.all_day_check = QCheckBox("All Day")
        self.time_edit = QTimeEdit()
        self.time_edit.setDisplayFormat("HH:mm")
        self.duration_spin = QDoubleSpinBox()
        self.duration_spin.setRange(0.5, 24 * 14)
        self.duration_spin.setSingleStep(0.5)
        self.duration_spin.setDecimals(1)
        self.duration_spin.setSuffix(" h")
        self.today_button = QPushButton("Set to Today")
        self.buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        self._build_layout()
        self._load_fields()

        self.title_edit.editingFinished.connect(lambda: self._edit(TitleChange(self.title_edit.text())))
        self.category_combo.currentIndexChanged.connect(
            lambda _index: self._edit(CategoryChange(self.category_combo.currentData()))
        )
        self.priority_check.toggled.connect(lambda checked: self._edit(PriorityChange(checked)))
        self.scheduled_check.toggled.connect(self._toggle_scheduled)
        self.date_edit.dateChanged.connect(lambda value: self._edit(DateChange(value.toPyDate())))
        self.all_day_check.toggled.connect(lambda checked: self._edit(AllDayChange(checked)))
        self.time_edit.timeChanged.connect(lambda value: self._edit(TimeChange(value.toPyTime())))
        self.duration_spin.valueChanged.connect(lambda value: self._edit(DurationChange(value)))
        self.today_button.clicked.connect(self.set_to_today)
        self.buttons.accepted.connect(self.save)
        self.buttons.rejected.connect(self.reject)

    def _build_layout(self) -> None:
        form = QFormLayout()
        form.addRow("Title", self.title_edit)
        form.addRow("Description", self.description_edit)
        form.addRow("Category", self.category_combo)
        form.addRow("", self.priority_check)
        date_row = QHBoxLayout()
        date_row.addWidget(self.scheduled_check)
        date_row.addWidget(self.date_edit, 1)
        date_row.addWidget(self.all_day_check)
        form.addRow("Due Date", date_row)
        form.addRow("Time", self.time_edit)
        form.addRow("Duration", self.duration_spin)
        footer = QHBoxLayout()
        footer.addWidget(self.today_button)
        footer.addStretch(1)
        footer.addWidget(self.buttons)
        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(footer)

    def _edit(self, change: FieldChange) -> None:
        if self._loading:
            return
        self.task = apply_change(self.task, change, now=self.store.now())
        self._load_fields()

    def _toggle_scheduled(self, checked: bool) -> None:
        date_value = self.date_edit.date().toPyDate() if checked else None
        self._edit(DateChange(date_value))

    def _load_fields(self) -> None:
        """Mirror the working task into the widgets without re-triggering edits."""
        self._loading = True
        task = self.task
        self.title_edit.setText(task.title)
        if self.description_edit.toPlainText() != task.description:
            self.description_edit.setPlainText(task.description)
        self.category_combo.setCurrentIndex(self.category_combo.findData(task.category))
        self.priority_check.setChecked(task.is_priority)
        scheduled = task.due_date is not None
        self.scheduled_check.setChecked(scheduled)
        self.date_edit.setEnabled(scheduled)
        self.all_day_check.setChecked(task.is_all_day)
        if scheduled:
            self.date_edit.setDate(QDate(task.due_date.year, task.due_date.month, task.due_date.day))
            self.time_edit.setTime(QTime(task.due_date.hour, task.due_date.minute))
        timed = scheduled and not task.is_all_day
        self.time_edit.setEnabled(timed)
        self.duration_spin.setEnabled(timed)
        self.duration_spin.setValue(task.duration or 1.0)
        self._loading = False

    def _take_text_fields(self) -> None:
        self.task = apply_change(self.task, TitleChange(self.title_edit.text()))
        self.task = apply_change(self.task, DescriptionChange(self.description_edit.toPlainText()))

    def save(self) -> None:
        self._take_text_fields()
        if dispatch_safely(self.store, UpdateTask(self.task)):
            self.accept()

    def set_to_today(self) -> None:
        """Commit the working copy moved to today, typed text included."""
        self._take_text_fields()
        self.task = apply_change(self.task, SetToday(), now=self.store.now())
        if dispatch_safely(self.store, UpdateTask(self.task)):
            self.accept()


class WeekCalendarWidget(QTableWidget):
    """Week grid: one column per day, an all-day row, then time slots.

    Dragging an event moves it; grabbing the lower edge of a timed event
    resizes it. Both are reported to the store as a single transaction.
    """

    task_activated = pyqtSignal(str)
    period_changed = pyqtSignal(object)

    def __init__(
        self,
        store: TaskStore,
        settings: Optional[CalendarSettings] = None,
        today: Optional[date] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        calendar_settings = settings or CalendarSettings()
        super().__init__(1 + calendar_settings.slots_per_day, 7, parent)
        self.settings = calendar_settings
        self.store = store
        self.week_start = self.settings.week_start(today or date.today())
        self._cells: Dict[Tuple[int, int], List[str]] = {}
        self._extent: Dict[str, Tuple[int, int, int]] = {}
        self._drag_state: Optional[DragState] = None
        self._setup_table()
        store.tasks_changed.connect(self.refresh)
        self.refresh()

    def _setup_table(self) -> None:
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        labels = ["All Day"]
        for slot in range(self.settings.slots_per_day):
            labels.append(self.settings.slot_start(self.week_start, slot).strftime("%H:%M"))
        self.setVerticalHeaderLabels(labels)
        self.setMouseTracking(True)

    def days(self) -> List[date]:
        return [self.week_start + timedelta(days=offset) for offset in range(7)]

    def set_week(self, day: date) -> None:
        self.week_start = self.settings.week_start(day)
        self.refresh()
        self.period_changed.emit(self.week_start)

    def shift_weeks(self, weeks: int) -> None:
        self.set_week(self.week_start + timedelta(weeks=weeks))

    def refresh(self, *_args: object) -> None:
        """Repaint all cells from the store's projected events."""
        self.setHorizontalHeaderLabels([day.strftime("%a %d.%m.") for day in self.days()])
        self._cells.clear()
        self._extent.clear()
        for row in range(self.rowCount()):
            for col in range(self.columnCount()):
                item = QTableWidgetItem("")
                item.setBackground(_EMPTY_CELL)
                self.setItem(row, col, item)
        for event in self.store.events():
            self._place(event)

    def _rows_for(self, event: CalendarEvent) -> Tuple[int, int]:
        if event.all_day:
            return 0, 0
        slot = self.settings.slot_for(event.start)
        if slot is None:
            slot = 0 if event.start.hour < self.settings.day_start_hour else self.settings.slots_per_day - 1
        count = 1
        if event.end is not None:
            minutes = (event.end - event.start).total_seconds() / 60
            count = max(1, math.ceil(minutes / self.settings.slot_minutes))
        last = min(slot + count - 1, self.settings.slots_per_day - 1)
        return slot + 1, last + 1

    def _place(self, event: CalendarEvent) -> None:
        col = (event.start.date() - self.week_start).days
        if not 0 <= col < 7:
            return
        first, last = self._rows_for(event)
        self._extent[event.id] = (col, first, last)
        color = QColor(event.color)
        for row in range(first, last + 1):
            self._cells.setdefault((row, col), []).append(event.id)
            self.item(row, col).setBackground(color)
        label = f"{event.title} [!]" if event.is_priority else event.title
        item = self.item(first, col)
        item.setText(f"{item.text()}\n{label}".strip())
        if event.description:
            item.setToolTip(event.description)

    def event_at(self, row: int, col: int) -> Optional[str]:
        """Topmost task id drawn in a cell."""
        ids = self._cells.get((row, col))
        return ids[-1] if ids else None

    def cell_instant(self, row: int, col: int) -> Tuple[datetime, bool]:
        """Start instant and all-day flag represented by a grid cell."""
        day = self.week_start + timedelta(days=col)
        if row == 0:
            return datetime.combine(day, datetime.min.time()), True
        return self.settings.slot_start(day, row - 1), False

    def move_event(self, task_id: str, row: int, col: int) -> bool:
        """Drop an event on a cell, keeping the length of timed events."""
        event = find_event(self.store, task_id)
        if event is None:
            return False
        start, all_day = self.cell_instant(row, col)
        end = None
        if not all_day and not event.all_day and event.end is not None:
            end = start + (event.end - event.start)
        return dispatch_safely(self.store, DropTask(Interaction(task_id, start, end, all_day)))

    def resize_event(self, task_id: str, row: int) -> bool:
        """Stretch a timed event so it ends with the slot at ``row``."""
        event = find_event(self.store, task_id)
        if event is None or event.all_day or row <= 0:
            return False
        slot = timedelta(minutes=self.settings.slot_minutes)
        end = self.settings.slot_start(event.start.date(), row - 1) + slot
        if end <= event.start:
            end = event.start + slot
        return dispatch_safely(self.store, ResizeTask(Interaction(task_id, event.start, end, False)))

    # Drag handling -----------------------------------------------------
    def mousePressEvent(self, event):  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton:
            row = self.rowAt(int(event.position().y()))
            col = self.columnAt(int(event.position().x()))
            task_id = self.event_at(row, col)
            if task_id is not None:
                _, _, last = self._extent[task_id]
                bottom = self.rowViewportPosition(row) + self.rowHeight(row)
                near_edge = abs(int(event.position().y()) - bottom) <= _DRAG_HANDLE_TOLERANCE
                mode = "resize" if row == last and row > 0 and near_edge else "move"
                self._drag_state = DragState(task_id=task_id, mode=mode, origin=(row, col))
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event):  # type: ignore[override]
        state = self._drag_state
        self._drag_state = None
        if state is not None:
            row = self.rowAt(int(event.position().y()))
            col = self.columnAt(int(event.position().x()))
            if row >= 0 and col >= 0 and (row, col) != state.origin:
                if state.mode == "resize":
                    self.resize_event(state.task_id, row)
                else:
                    self.move_event(state.task_id, row, col)
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event):  # type: ignore[override]
        row = self.rowAt(int(event.position().y()))
        col = self.columnAt(int(event.position().x()))
        task_id = self.event_at(row, col)
        if task_id is not None:
            self.task_activated.emit(task_id)
        super().mouseDoubleClickEvent(event)


class MonthCalendarWidget(QTableWidget):
    """Six week grid of day cells; dragging an event to another day moves it."""

    task_activated = pyqtSignal(str)
    period_changed = pyqtSignal(object)

    def __init__(
        self,
        store: TaskStore,
        settings: Optional[CalendarSettings] = None,
        today: Optional[date] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(_MONTH_WEEKS, 7, parent)
        self.settings = settings or CalendarSettings()
        self.store = store
        self.month = (today or date.today()).replace(day=1)
        self._cells: Dict[Tuple[int, int], List[str]] = {}
        self._drag_state: Optional[DragState] = None
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.verticalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        store.tasks_changed.connect(self.refresh)
        self.refresh()

    def grid_start(self) -> date:
        return self.settings.month_grid_start(self.month)

    def cell_date(self, row: int, col: int) -> date:
        return self.grid_start() + timedelta(days=row * 7 + col)

    def cell_for(self, day: date) -> Optional[Tuple[int, int]]:
        offset = (day - self.grid_start()).days
        if not 0 <= offset < _MONTH_WEEKS * 7:
            return None
        return divmod(offset, 7)

    def set_month(self, day: date) -> None:
        self.month = day.replace(day=1)
        self.refresh()
        self.period_changed.emit(self.month)

    def shift_months(self, months: int) -> None:
        index = self.month.year * 12 + self.month.month - 1 + months
        self.set_month(date(index // 12, index % 12 + 1, 1))

    def refresh(self, *_args: object) -> None:
        """Repaint day numbers and event titles from the store."""
        start = self.grid_start()
        self.setHorizontalHeaderLabels([(start + timedelta(days=offset)).strftime("%a") for offset in range(7)])
        self.setVerticalHeaderLabels(
            [f"W{(start + timedelta(weeks=row)).isocalendar()[1]}" for row in range(_MONTH_WEEKS)]
        )
        self._cells.clear()
        for row in range(_MONTH_WEEKS):
            for col in range(7):
                day = self.cell_date(row, col)
                item = QTableWidgetItem(str(day.day))
                item.setTextAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
                item.setBackground(_EMPTY_CELL if day.month == self.month.month else _OUTSIDE_MONTH_CELL)
                self.setItem(row, col, item)
        # All-day entries first, then timed ones by start, like a day cell lists them.
        for event in sorted(self.store.events(), key=lambda event: (not event.all_day, event.start)):
            self._place(event)

    def _place(self, event: CalendarEvent) -> None:
        cell = self.cell_for(event.start.date())
        if cell is None:
            return
        ids = self._cells.setdefault(cell, [])
        ids.append(event.id)
        label = event.title if event.all_day else f"{event.start:%H:%M} {event.title}"
        if event.is_priority:
            label = f"{label} [!]"
        item = self.item(*cell)
        item.setText(f"{item.text()}\n{label}")
        if len(ids) == 1:
            item.setBackground(QColor(event.color))

    def event_at(self, row: int, col: int) -> Optional[str]:
        """First task id listed in a day cell."""
        ids = self._cells.get((row, col))
        return ids[0] if ids else None

    def move_event(self, task_id: str, row: int, col: int) -> bool:
        """Drop an event on the day at ``row``/``col``."""
        event = find_event(self.store, task_id)
        if event is None:
            return False
        interaction = move_to_day(event, self.cell_date(row, col))
        return dispatch_safely(self.store, DropTask(interaction))

    # Drag handling -----------------------------------------------------
    def mousePressEvent(self, event):  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton:
            row = self.rowAt(int(event.position().y()))
            col = self.columnAt(int(event.position().x()))
            task_id = self.event_at(row, col)
            if task_id is not None:
                self._drag_state = DragState(task_id=task_id, mode="move", origin=(row, col))
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event):  # type: ignore[override]
        state = self._drag_state
        self._drag_state = None
        if state is not None:
            row = self.rowAt(int(event.position().y()))
            col = self.columnAt(int(event.position().x()))
            if row >= 0 and col >= 0 and (row, col) != state.origin:
                self.move_event(state.task_id, row, col)
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event):  # type: ignore[override]
        row = self.rowAt(int(event.position().y()))
        col = self.columnAt(int(event.position().x()))
        task_id = self.event_at(row, col)
        if task_id is not None:
            self.task_activated.emit(task_id)
        super().mouseDoubleClickEvent(event)


class CalendarPanel(QWidget):
    """Navigation bar with a Week/Month switcher above the calendar views."""

    def __init__(
        self,
        week: WeekCalendarWidget,
        month: MonthCalendarWidget,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.week = week
        self.month = month
        self.title = QLabel()
        self.view_combo = QComboBox()
        self.view_combo.addItems(["Week", "Month"])
        self.stack = QStackedWidget()
        self.stack.addWidget(week)
        self.stack.addWidget(month)
        previous_button = QPushButton("<")
        today_button = QPushButton("Today")
        next_button = QPushButton(">")
        previous_button.clicked.connect(lambda: self.shift(-1))
        today_button.clicked.connect(lambda: self.go_to(date.today()))
        next_button.clicked.connect(lambda: self.shift(1))
        self.view_combo.currentIndexChanged.connect(self._switch_view)
        week.period_changed.connect(self._update_title)
        month.period_changed.connect(self._update_title)

        nav = QHBoxLayout()
        nav.addWidget(previous_button)
        nav.addWidget(next_button)
        nav.addWidget(today_button)
        nav.addStretch(1)
        nav.addWidget(self.title)
        nav.addStretch(1)
        nav.addWidget(self.view_combo)
        layout = QVBoxLayout(self)
        layout.addLayout(nav)
        layout.addWidget(self.stack, 1)
        self._update_title()

    def current_view(self) -> str:
        return self.view_combo.currentText()

    def set_view(self, name: str) -> None:
        self.view_combo.setCurrentIndex(self.view_combo.findText(name))

    def shift(self, step: int) -> None:
        """Page the visible view by one week or one month."""
        if self.current_view() == "Month":
            self.month.shift_months(step)
        else:
            self.week.shift_weeks(step)

    def go_to(self, day: date) -> None:
        if self.current_view() == "Month":
            self.month.set_month(day)
        else:
            self.week.set_week(day)

    def _switch_view(self, index: int) -> None:
        self.stack.setCurrentIndex(index)
        # The month view opens on the visible week; the week view stays put
        # unless it lies outside the month being left.
        if self.current_view() == "Month":
            self.month.set_month(self.week.week_start)
        elif self.week.week_start.replace(day=1) != self.month.month:
            self.week.set_week(self.month.month)
        self._update_title()

    def _update_title(self, *_args: object) -> None:
        if self.current_view() == "Month":
            self.title.setText(f"{self.month.month:%B %Y}")
            return
        week_start = self.week.week_start
        week_end = week_start + timedelta(days=6)
        self.title.setText(f"{week_start:%d.%m.} - {week_end:%d.%m.%Y}")


class MainWindow(QMainWindow):
    """Primary window: task sidebar next to the week and month calendars."""

    def __init__(self, store: TaskStore, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self.setWindowTitle("Caltask")
        self.store = store
        self.settings = settings or Settings()
        self.task_list = TaskListWidget(store)
        self.calendar = WeekCalendarWidget(store, self.settings.calendar)
        self.month_calendar = MonthCalendarWidget(store, self.settings.calendar)
        self.calendar_panel = CalendarPanel(self.calendar, self.month_calendar)
        # All views open the same editor and report storage trouble in one place.
        self.task_list.task_activated.connect(self.edit_task)
        self.calendar.task_activated.connect(self.edit_task)
        self.month_calendar.task_activated.connect(self.edit_task)
        store.sync_failed.connect(self._handle_sync_failed)
        self._build_layout()
        self._build_menu()
        self.resize(1200, 800)

    def _build_layout(self) -> None:
        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.task_list)
        splitter.addWidget(self.calendar_panel)
        splitter.setStretchFactor(1, 1)
        splitter.setSizes([320, 880])
        self.setCentralWidget(splitter)

    def _build_menu(self) -> None:
        """Create the File menu along with shortcuts."""
        menu = self.menuBar()
        file_menu = menu.addMenu("File")

        reload_action = QAction("Reload", self)
        reload_action.setShortcut(QKeySequence.StandardKey.Refresh)
        reload_action.triggered.connect(self.action_reload)
        file_menu.addAction(reload_action)

        file_menu.addSeparator()
        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

    def edit_task(self, task_id: str) -> None:
        task = self.store.get(task_id)
        if task is None:
            return
        dialog = TaskEditorDialog(self.store, task, self)
        dialog.exec()

    def action_reload(self) -> None:
        """Discard the in-memory collection and read storage again."""
        try:
            tasks = self.store.load()
        except PersistenceError as exc:
            QMessageBox.critical(self, "Reload failed", str(exc))
            return
        self.statusBar().showMessage(f"Loaded {len(tasks)} tasks", 3000)

    def _handle_sync_failed(self, message: str) -> None:
        self.statusBar().showMessage(f"Could not save changes: {message}", 5000)


def use_user_collation() -> None:
    """Let title ordering (`locale.strxfrm`) follow the user locale.

    Python starts with the C collation, so without this call titles sort
    by code point. An unsupported locale keeps C and is only logged.
    """
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("Keeping default collation: %s", exc)


def run() -> None:
    """Entry point used by `python -m caltask`.

    Configures logging and the collation locale before any task is sorted.
    """
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    use_user_collation()
    app = QApplication(sys.argv)
    store = TaskStore(CsvTaskRepository(settings.data_path))
    window = MainWindow(store, settings)
    try:
        store.load()
    except PersistenceError as exc:  # pragma: no cover - interactive guard
        QMessageBox.critical(window, "Open failed", str(exc))
    window.show()
    logger.info("Using task file %s", settings.data_path)
    app.exec()


if __name__ == "__main__":
    run()
