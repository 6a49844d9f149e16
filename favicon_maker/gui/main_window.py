import tkinter as tk
from tkinter import ttk, messagebox
from pathlib import Path

from PIL import Image, ImageTk

from favicon_maker.core.canvas import create_canvas
from favicon_maker.core.errors import HostError
from favicon_maker.core.exporter import FaviconExporter
from favicon_maker.core.host import DocumentHost
from favicon_maker.core.image_handler import open_image_dialog
from favicon_maker.core.storage import dialog_folder_picker
from favicon_maker.utils.config import AppConfig
from favicon_maker.utils.logger import get_logger

logger = get_logger("gui")

PREVIEW_SIZE = 184


class MainWindow(tk.Tk):
    def __init__(self, config: AppConfig | None = None):
        super().__init__()
        self.title("Favicon Maker")
        self.geometry("420x360")
        self.minsize(360, 320)

        self.settings = (config or AppConfig()).settings
        self.host = DocumentHost(resample=self.settings.resample)
        self.exporter = FaviconExporter(
            self.host,
            pick_folder=dialog_folder_picker(self),
            alert=self.show_alert,
            settings=self.settings,
        )
        self._preview_image = None

        self._build_menu()
        self._build_buttons()
        self._build_preview()
        self._build_statusbar()

        self.bind_all("<Control-n>", lambda e: self.generate_canvas())
        self.bind_all("<Control-o>", lambda e: self.open_image())
        self.bind_all("<Control-e>", lambda e: self.export_favicons())
        self.protocol("WM_DELETE_WINDOW", self.destroy)
        self._refresh()

    # -------------------- Layout --------------------
    def _build_menu(self):
        menubar = tk.Menu(self)
        file_menu = tk.Menu(menubar, tearoff=0)
        file_menu.add_command(label="Generate Canvas (Ctrl+N)", command=self.generate_canvas)
        file_menu.add_command(label="Open... (Ctrl+O)", command=self.open_image)
        file_menu.add_separator()
        file_menu.add_command(label="Export Favicons... (Ctrl+E)", command=self.export_favicons)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.destroy)
        menubar.add_cascade(label="File", menu=file_menu)

        help_menu = tk.Menu(menubar, tearoff=0)
        help_menu.add_command(label="About", command=self._about)
        menubar.add_cascade(label="Help", menu=help_menu)
        self.config(menu=menubar)

    def _build_buttons(self):
        bar = ttk.Frame(self, padding=8)
        bar.pack(fill="x")
        s = self.settings
        ttk.Button(bar, text=f"Generate Canvas ({s.canvas_width}x{s.canvas_height})",
                   command=self.generate_canvas).pack(side="left", padx=(0, 6))
        ttk.Button(bar, text="Export Favicons", command=self.export_favicons).pack(side="left", padx=(0, 6))
        ttk.Button(bar, text="Open...", command=self.open_image).pack(side="right")

    def _build_preview(self):
        frame = ttk.LabelFrame(self, text="Active document", padding=8)
        frame.pack(fill="both", expand=True, padx=8)
        self.preview_label = ttk.Label(frame, anchor="center")
        self.preview_label.pack(fill="both", expand=True)

    def _build_statusbar(self):
        self.status_label = ttk.Label(self, text="Status: Ready", anchor="w")
        self.status_label.pack(fill="x", padx=8, pady=(4, 6))

    # -------------------- Feedback --------------------
    def show_alert(self, message: str, error: bool = False):
        if error:
            messagebox.showerror("Favicon Maker", message, parent=self)
        else:
            messagebox.showinfo("Favicon Maker", message, parent=self)

    def _update_status(self, text):
        self.status_label.config(text=f"Status: {text}")

    def _refresh(self):
        doc = self.host.active_document
        if doc is None:
            self.preview_label.config(image="", text="No document. Generate a canvas or open an image.")
            self._preview_image = None
            return
        scale = max(1, PREVIEW_SIZE // max(doc.width, doc.height))
        thumb = doc.image.resize((doc.width * scale, doc.height * scale), Image.Resampling.NEAREST)
        self._preview_image = ImageTk.PhotoImage(thumb)
        self.preview_label.config(image=self._preview_image, text="")
        self._update_status(f"{doc.title} | {doc.width}x{doc.height} | {doc.mode} | {doc.resolution} dpi")

    # -------------------- Actions --------------------
    def generate_canvas(self):
        doc = create_canvas(self.host, alert=self.show_alert, settings=self.settings)
        if doc is not None:
            self._refresh()

    def open_image(self):
        path = open_image_dialog(self)
        if not path:
            return
        try:
            self.host.execute_as_modal(lambda: self.host.open_document(path, resolution=self.settings.resolution),
                                       command_name="Open Document")
        except HostError as e:
            logger.error("Open failed: %s", e)
            self.show_alert(f"Failed to open image:\n{e}", error=True)
            return
        self._refresh()
        self._update_status(f"Loaded: {Path(path).name}")

    def export_favicons(self):
        result = self.exporter.export()
        if result.ok:
            self._update_status(f"Exported {len(result.written)} files to {result.folder.native_path}")
        else:
            self._update_status(f"Export failed: {result.error}")

    def _about(self):
        messagebox.showinfo(
            "About",
            "Favicon Maker\n"
            "- Blank favicon canvas\n"
            "- Light/dark PNG export at 1x and 2x",
            parent=self,
        )


def run_app(config: AppConfig | None = None):
    app = MainWindow(config)
    app.mainloop()
