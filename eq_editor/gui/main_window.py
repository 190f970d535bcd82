"""
Main window of the EQ Editor application.

Structure:
- Toolbar: editor mode, profile name, load / auto gain / reset buttons
- Curve editor (EQCurveWidget)
- Status bar: interaction hint and the focused band
"""

from typing import Optional
from pathlib import Path
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFrame, QComboBox, QLineEdit,
    QStatusBar, QFileDialog,
)
from PySide6.QtCore import QSettings, QStandardPaths

from ..core.biquad import BiquadResponseOracle
from ..core.config import EditorConfig, EditorMode
from ..core.engine import CalibrationHint, InteractionEngine
from ..core.profiles import JsonProfileRepository
from ..core.store import EntityStore
from ..utils.formatting import format_band, format_bandwidth, format_db, format_frequency
from .eq_curve_widget import EQCurveWidget


SETTINGS_PROFILE_DIR = "profiles/directory"
SETTINGS_PROFILE_NAME = "profiles/name"
SETTINGS_MODE = "editor/mode"


def default_profile_dir() -> Path:
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    return Path(location or Path.home() / ".eq_editor") / "profiles"


class MainWindow(QMainWindow):
    """Main window hosting one curve editor."""

    def __init__(self):
        super().__init__()

        self._settings = QSettings()
        self._oracle = BiquadResponseOracle()
        self._engine: Optional[InteractionEngine] = None
        self._editor: Optional[EQCurveWidget] = None

        profile_dir = self._settings.value(SETTINGS_PROFILE_DIR, str(default_profile_dir()))
        self._repository = JsonProfileRepository(profile_dir)

        self._init_ui()
        self._apply_theme()

        mode = self._settings.value(SETTINGS_MODE, EditorMode.BANDS.value)
        self.mode_combo.setCurrentIndex(1 if mode == EditorMode.POINTS.value else 0)
        self._create_editor()

    def _init_ui(self):
        """Build the UI."""
        self.setWindowTitle("EQ Editor")
        self.setMinimumSize(900, 500)

        central = QWidget()
        self.setCentralWidget(central)
        self._layout = QVBoxLayout(central)
        self._layout.setContentsMargins(8, 8, 8, 8)

        toolbar = QFrame()
        toolbar_layout = QHBoxLayout(toolbar)
        toolbar_layout.setContentsMargins(0, 0, 0, 8)

        self.mode_combo = QComboBox()
        self.mode_combo.addItem("Parametric bands", EditorMode.BANDS)
        self.mode_combo.addItem("Curve points", EditorMode.POINTS)
        self.mode_combo.currentIndexChanged.connect(self._on_mode_changed)
        toolbar_layout.addWidget(self.mode_combo)

        self.profile_edit = QLineEdit(self._settings.value(SETTINGS_PROFILE_NAME, "default"))
        self.profile_edit.setPlaceholderText("Profile name")
        self.profile_edit.setMaximumWidth(200)
        self.profile_edit.returnPressed.connect(self._load_profile)
        toolbar_layout.addWidget(self.profile_edit)

        btn_load = QPushButton("Load")
        btn_load.clicked.connect(self._load_profile)
        toolbar_layout.addWidget(btn_load)

        btn_folder = QPushButton("Folder...")
        btn_folder.clicked.connect(self._choose_profile_dir)
        toolbar_layout.addWidget(btn_folder)

        toolbar_layout.addStretch()

        self.btn_auto_gain = QPushButton("Auto Gain")
        self.btn_auto_gain.clicked.connect(self._apply_auto_gain)
        toolbar_layout.addWidget(self.btn_auto_gain)

        btn_reset = QPushButton("Reset")
        btn_reset.clicked.connect(self._reset)
        toolbar_layout.addWidget(btn_reset)

        self._layout.addWidget(toolbar)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.hint_label = QLabel("")
        self.hint_label.setStyleSheet("color: #a6adc8;")
        self.status_bar.addWidget(self.hint_label, stretch=1)
        self.focus_label = QLabel("")
        self.status_bar.addPermanentWidget(self.focus_label)

    # --- Editor lifecycle ---------------------------------------------------

    def _current_mode(self) -> EditorMode:
        return self.mode_combo.currentData()

    def _profile_id(self) -> str:
        name = self.profile_edit.text().strip() or "default"
        return f"{name}-{self._current_mode().value}"

    def _create_editor(self):
        """(Re)create engine and curve widget for the selected mode."""
        if self._editor is not None:
            self._editor.shutdown()
            self._layout.removeWidget(self._editor)
            self._editor.deleteLater()

        mode = self._current_mode()
        self._engine = InteractionEngine(
            store=EntityStore(mode),
            config=EditorConfig(),
            oracle=self._oracle if mode == EditorMode.BANDS else None,
            repository=self._repository,
            profile_id=self._profile_id(),
            hint_sink=self._on_calibration_hint,
        )
        self._engine.subscribe(self._update_status)
        self._engine.load_profile()

        self._editor = EQCurveWidget(self._engine)
        self._layout.addWidget(self._editor, stretch=1)
        self._editor.setFocus()
        self.btn_auto_gain.setEnabled(mode == EditorMode.BANDS)
        self._update_status(self._engine)

    def _on_mode_changed(self, _index: int):
        self._settings.setValue(SETTINGS_MODE, self._current_mode().value)
        if self._engine is not None:
            self._create_editor()

    def _load_profile(self):
        if self._engine is None:
            return
        self._settings.setValue(SETTINGS_PROFILE_NAME, self.profile_edit.text().strip())
        data = self._engine.load_profile(self._profile_id())
        self.status_bar.showMessage(
            f"Loaded {self._profile_id()} ({len(data.entities)} entities)", 3000
        )

    def _choose_profile_dir(self):
        directory = QFileDialog.getExistingDirectory(
            self, "Profile Folder", str(self._repository.directory)
        )
        if not directory:
            return
        self._engine.flush()
        self._settings.setValue(SETTINGS_PROFILE_DIR, directory)
        self._repository = JsonProfileRepository(directory)
        self._create_editor()

    def _apply_auto_gain(self):
        if self._engine is None:
            return
        gain = self._engine.auto_gain()
        self._engine.set_volume(gain)
        self.status_bar.showMessage(f"Volume set to {format_db(gain)}", 3000)

    def _reset(self):
        if self._engine is None:
            return
        self._engine.delete_entities(self._engine.store.ids)
        self._engine.set_volume(0.0)

    # --- Feedback -----------------------------------------------------------

    def _update_status(self, engine: InteractionEngine):
        self.hint_label.setText(engine.instruction)
        focus_id = engine.state.dragging_id or engine.state.hovered_id
        band = engine.store.get(focus_id) if focus_id else None
        if band is None:
            self.focus_label.setText(f"Volume {format_db(engine.store.volume)}")
        elif engine.mode == EditorMode.POINTS:
            self.focus_label.setText(format_band(band.frequency, band.gain))
        else:
            self.focus_label.setText(
                f"{format_band(band.frequency, band.gain, band.q)}  {format_bandwidth(band.q)}"
            )

    def _on_calibration_hint(self, hint: CalibrationHint):
        # No audio feedback service; the hint only annotates the status bar
        if hint.frequency is not None:
            self.status_bar.showMessage(f"Calibration {format_frequency(hint.frequency)}", 500)

    def closeEvent(self, event):
        if self._editor is not None:
            self._engine.flush()
            self._editor.shutdown()
        super().closeEvent(event)

    def _apply_theme(self):
        """Dark theme."""
        self.setStyleSheet("""
            QMainWindow, QWidget {
                background-color: #1e1e2e;
                color: #cdd6f4;
                font-family: 'SF Pro Display', 'Segoe UI', sans-serif;
            }
            QPushButton {
                background-color: #313244;
                color: #cdd6f4;
                border: 1px solid #45475a;
                padding: 8px 16px;
                border-radius: 6px;
            }
            QPushButton:hover {
                background-color: #45475a;
                border-color: #89b4fa;
            }
            QPushButton:disabled {
                background-color: #181825;
                color: #585b70;
            }
            QComboBox, QLineEdit {
                background-color: #313244;
                color: #cdd6f4;
                border: 1px solid #45475a;
                padding: 6px 12px;
                border-radius: 4px;
            }
            QStatusBar {
                background-color: #181825;
            }
        """)
