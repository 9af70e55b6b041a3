"""
One-shot streak celebration shown when the streak counter goes up.
"""

from typing import Optional
from PySide6.QtWidgets import QDialog, QVBoxLayout, QLabel, QPushButton, QWidget
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QFont


class StreakCelebrationDialog(QDialog):
    """Non-modal dialog reused for every celebration."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Streak Increased!")
        self.setModal(False)

        layout = QVBoxLayout(self)
        layout.setSpacing(12)
        layout.setContentsMargins(30, 30, 30, 30)

        self.count_label = QLabel("🔥 0")
        self.count_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        count_font = QFont()
        count_font.setPointSize(36)
        count_font.setBold(True)
        self.count_label.setFont(count_font)
        layout.addWidget(self.count_label)

        self.message_label = QLabel("")
        self.message_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.message_label.setWordWrap(True)
        layout.addWidget(self.message_label)

        ok_btn = QPushButton("Keep going")
        ok_btn.clicked.connect(self.accept)
        layout.addWidget(ok_btn)

    @Slot(int, str)
    def celebrate(self, streak_value: int, message: str):
        self.count_label.setText(f"🔥 {streak_value}")
        self.message_label.setText(message)
        self.show()
        self.raise_()
