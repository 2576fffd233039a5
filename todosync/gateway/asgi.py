from __future__ import annotations

from todosync.config import load_config
from todosync.store.supabase_store import SupabaseTodoStore
from todosync.sync.synchronizer import TaskSynchronizer

from .app import create_app

# Missing or malformed SUPABASE_URL / SUPABASE_ANON_KEY raises ConfigError here and aborts startup
_config = load_config()
_store = SupabaseTodoStore(url=_config.store_url, api_key=_config.store_key, table=_config.table)
app = create_app(TaskSynchronizer(_store))
