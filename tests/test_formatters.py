"""
Testes para validação de números de telefone.
"""

from backend.utils.formatters import limpar_telefone, numero_valido, numeros_invalidos


class TestNumeros:

    def test_numero_valido(self):
        assert numero_valido("5511912345678")
        assert numero_valido(5511912345678)
        assert not numero_valido("+5511912345678")
        assert not numero_valido("5511912345678\n")
        assert not numero_valido("123")
        assert not numero_valido(None)
        assert not numero_valido(True)

    def test_numeros_invalidos_preserva_ordem(self):
        assert numeros_invalidos(["5511900000001", "abc", 5511900000002, 12]) == ["abc", 12]

    def test_limpar_telefone(self):
        assert limpar_telefone("+55 (11) 98765-4321") == "5511987654321"
        assert limpar_telefone(5511900000001) == "5511900000001"
