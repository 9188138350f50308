from backend.core.database import get_db, engine, SessionLocal
from backend.core.security import (
    verificar_senha,
    gerar_hash_senha,
    criar_access_token,
    obter_usuario_atual
)
