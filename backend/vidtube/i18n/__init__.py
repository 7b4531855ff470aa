import yaml
from pathlib import Path
from typing import Any, Dict

_BASE_PATH = Path(__file__).parent / "locales"
FALLBACK_LOCALE = "en"


class Translator:
    def __init__(self, base_path: Path = _BASE_PATH):
        self.base_path = base_path
        self._locales: Dict[str, Dict[str, Any]] = {}

    def load(self):
        for loc_dir in self.base_path.iterdir():
            if loc_dir.is_dir():
                for yml in sorted(loc_dir.glob("*.yml")):
                    data = yaml.safe_load(yml.read_text(encoding="utf-8")) or {}
                    self._locales.setdefault(loc_dir.name, {}).update(data)

    @property
    def locales(self) -> list[str]:
        return sorted(self._locales)

    def _lookup(self, key: str, locale: str) -> Any:
        cur: Any = self._locales.get(locale, {})
        for p in key.split('.'):
            if not isinstance(cur, dict):
                return None
            cur = cur.get(p)
        return cur

    def t(self, key: str, locale: str = FALLBACK_LOCALE, **kwargs) -> str:
        """Render ``key`` in ``locale``, falling back to English, then to the key itself."""
        cur = self._lookup(key, locale)
        if cur is None and locale != FALLBACK_LOCALE:
            cur = self._lookup(key, FALLBACK_LOCALE)
        if cur is None:
            return key
        if isinstance(cur, str):
            try:
                return cur.format(**kwargs)
            except (KeyError, IndexError, ValueError):
                return cur
        return str(cur)


translator = Translator()
translator.load()
