"""
Funções de formatação e validação de números de telefone.
"""

import re
from typing import Iterable, List

NUMERO_REGEX = re.compile(r"[0-9]{10,15}")


def limpar_telefone(telefone) -> str:
    """
    Remove tudo que não for dígito.

    Exemplo:
        >>> limpar_telefone("+55 (11) 99999-9999")
        '5511999999999'
    """
    return "".join(filter(str.isdigit, str(telefone)))


def numero_valido(numero) -> bool:
    """Número com 10 a 15 dígitos, sem formatação (aceita int vindo de JSON)"""
    if numero is None or isinstance(numero, bool):
        return False
    return bool(NUMERO_REGEX.fullmatch(str(numero)))


def numeros_invalidos(numeros: Iterable) -> List:
    return [n for n in numeros if not numero_valido(n)]
