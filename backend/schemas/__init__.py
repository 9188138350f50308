from backend.schemas.schemas import (
    # Usuario
    UsuarioBase,
    UsuarioCriar,
    UsuarioAtualizar,
    UsuarioAlterarSenha,
    UsuarioResposta,
    # Auth
    Token,
    LoginRequest,
    # Conta
    ContaCriar,
    ContaAtualizar,
    ContaResposta,
    LogAtividadeResposta,
    # Mensagens
    EnvioMensagem,
    EnvioEmMassa,
    ResultadoEnvio,
    ResultadoEnvioEmMassa,
    MensagemResposta,
    # Modelos
    ModeloMensagemCriar,
    ModeloMensagemAtualizar,
    ModeloMensagemResposta,
    # Contatos
    ContatoCriar,
    ContatoAtualizar,
    ContatoResposta,
    GrupoContatos,
    ImportacaoContatos,
    ResultadoImportacao,
    # Webhook
    EventoSessao
)
