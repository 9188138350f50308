#!/usr/bin/env python3
"""
Script para iniciar o Disparador WhatsApp
"""

import sys


def main():
    print("=" * 60)
    print("   DISPARADOR WHATSAPP - Envio de mensagens e gestão de contas")
    print("=" * 60)
    print()

    print("[*] Verificando banco de dados...")

    try:
        from backend.models import criar_tabelas

        print("[*] Criando/Verificando tabelas...")
        criar_tabelas()

        print("[OK] Banco de dados configurado!")
        print()

    except Exception as e:
        print(f"[ERRO] Erro ao configurar banco: {e}")
        print("   Verifique as configuracoes no arquivo .env")
        sys.exit(1)

    print("[*] Iniciando servidor...")
    print()

    from backend.config import settings
    import uvicorn

    print(f"   API: http://localhost:{settings.PORT}")
    print(f"   API Docs: http://localhost:{settings.PORT}/docs")
    print(f"   Webhook do gateway: http://localhost:{settings.PORT}/api/whatsapp/webhook")
    print()
    print("=" * 60)
    print()

    uvicorn.run(
        "backend.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    main()
