"""
Upload de mídia: gravação em arquivo temporário e limpeza.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from backend.config import settings

logger = logging.getLogger(__name__)

TIPOS_PERMITIDOS = {
    # Imagens
    "image/jpeg", "image/png", "image/gif", "image/webp",
    # Vídeos
    "video/mp4", "video/avi", "video/mov", "video/wmv", "video/quicktime",
    # Áudios
    "audio/mp3", "audio/mpeg", "audio/wav", "audio/aac", "audio/ogg",
    # Documentos
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

TAMANHO_BLOCO = 1024 * 1024


class ArquivoInvalidoError(Exception):
    """Upload rejeitado (tipo ou tamanho)"""


@dataclass
class ArquivoTemporario:
    caminho: Path
    mimetype: str
    nome_original: str
    tamanho: int


def diretorio_temporario() -> Path:
    pasta = Path(settings.UPLOAD_DIR) / "temp"
    pasta.mkdir(parents=True, exist_ok=True)
    return pasta


async def salvar_upload(upload: UploadFile) -> ArquivoTemporario:
    """
    Grava o upload em disco, validando tipo e tamanho.

    Raises:
        ArquivoInvalidoError: tipo não suportado ou arquivo maior que o limite
    """
    mimetype = (upload.content_type or "").lower()
    if mimetype not in TIPOS_PERMITIDOS:
        raise ArquivoInvalidoError(
            "Tipo de arquivo não suportado. Use imagens, vídeos, áudios ou documentos."
        )

    limite = settings.MAX_UPLOAD_MB * 1024 * 1024
    sufixo = Path(upload.filename or "").suffix
    caminho = diretorio_temporario() / f"{uuid.uuid4().hex}{sufixo}"
    tamanho = 0

    try:
        with caminho.open("wb") as destino:
            while bloco := await upload.read(TAMANHO_BLOCO):
                tamanho += len(bloco)
                if tamanho > limite:
                    raise ArquivoInvalidoError(
                        f"Arquivo muito grande. Tamanho máximo é {settings.MAX_UPLOAD_MB}MB."
                    )
                destino.write(bloco)
    except Exception:
        remover_arquivo(caminho)
        raise

    logger.info(f"[Upload] {upload.filename} ({mimetype}, {tamanho} bytes) salvo em {caminho}")

    return ArquivoTemporario(
        caminho=caminho,
        mimetype=mimetype,
        nome_original=upload.filename or caminho.name,
        tamanho=tamanho,
    )


def remover_arquivo(caminho: Optional[Path]) -> None:
    """Remove arquivo temporário; falhas apenas geram aviso no log"""
    if not caminho:
        return
    try:
        Path(caminho).unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"[Upload] Falha ao remover arquivo temporário {caminho}: {e}")
