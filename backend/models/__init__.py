from backend.models.models import (
    Base,
    Usuario,
    Conta,
    LogAtividade,
    ModeloMensagem,
    Contato,
    Mensagem,
    StatusConta,
    TipoMensagem,
    StatusMensagem,
    criar_tabelas,
)
