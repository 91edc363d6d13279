"""fluorite -- project scaffolder for Next.js, Expo, Tauri and Flutter apps."""

__version__ = "0.1.0"
