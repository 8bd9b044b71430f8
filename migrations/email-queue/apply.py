"""
Script para aplicar as migrations da fila de emails.

Uso:
    python migrations/email-queue/apply.py

Requer: SUPABASE_URL e SUPABASE_SERVICE_KEY no .env e a funcao
exec_sql disponivel no banco. Sem ela, rode os SQLs no Supabase
SQL Editor.
"""
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from supabase import create_client

# Diretorio das migrations
MIGRATIONS_DIR = Path(__file__).parent

# Ordem das migrations
MIGRATIONS = [
    "001_email_jobs.sql",
]


def apply_migrations(supabase) -> list[str]:
    """Aplica as migrations em ordem. Retorna as que falharam."""
    falhas = []
    for migration_file in MIGRATIONS:
        path = MIGRATIONS_DIR / migration_file
        if not path.exists():
            print(f"[SKIP] {migration_file} nao encontrado")
            continue

        print(f"[APPLY] {migration_file}...")
        try:
            supabase.rpc("exec_sql", {"sql": path.read_text()}).execute()
            print(f"[OK] {migration_file}")
        except Exception as e:
            print(f"[ERROR] {migration_file}: {e}")
            falhas.append(migration_file)
    return falhas


def main() -> int:
    load_dotenv()
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_KEY")

    if not url or not key:
        print("Erro: SUPABASE_URL e SUPABASE_SERVICE_KEY necessarios no .env")
        return 1

    print("=== Email Queue Migrations ===")
    print(f"URL: {url}")
    print()

    falhas = apply_migrations(create_client(url, key))

    if falhas:
        print()
        print("Execute manualmente no Supabase SQL Editor:")
        for m in falhas:
            print(f"  - migrations/email-queue/{m}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
