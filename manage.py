#!/usr/bin/env python
"""
Django's command-line utility for administrative tasks.

Fluxo Board - Kanban colaborativo em tempo real
"""

import os
import sys


def main():
    """Run administrative tasks."""

    # Configuração padrão para desenvolvimento
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    # Comandos customizados do Fluxo Board
    if len(sys.argv) > 1:
        command = sys.argv[1]

        # Comando de setup inicial
        if command == 'setup':
            print("🚀 Configurando Fluxo Board...")

            # Executar migrações
            print("📊 Aplicando migrações...")
            if os.system('python manage.py migrate') != 0:
                print("❌ Erro nas migrações")
                return

            # Coletar arquivos estáticos
            print("📁 Coletando arquivos estáticos...")
            os.system('python manage.py collectstatic --noinput')

            # Criar superusuário se não existir
            print("👤 Verificando superusuário...")
            exit_code = os.system(
                'python manage.py shell -c "from apps.core.models import User; User.objects.filter(is_superuser=True).exists() or User.objects.create_superuser(\'admin\', \'admin@fluxo.dev\', \'admin123\')"')

            if exit_code == 0:
                print("🌱 Populando banco com dados demo...")
                os.system('python manage.py seed')

                print("✅ Setup concluído!")
                print("🔑 Acesse o admin com: admin/admin123")
            else:
                print("⚠️  Setup parcial concluído (sem dados demo)")
            return

        elif command == 'backup':
            print("💾 Criando backup do banco...")
            from datetime import datetime
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            backup_file = f"backup_fluxo_{timestamp}.json"
            os.system(f'python manage.py dumpdata --indent 2 --exclude contenttypes --exclude sessions > {backup_file}')
            print(f"✅ Backup criado: {backup_file}")
            return

        # Comando de reset
        elif command == 'reset':
            confirm = input("⚠️  Isso irá apagar TODOS os dados. Continuar? (y/N): ")
            if confirm.lower() == 'y':
                print("🗑️  Resetando banco de dados...")
                os.system('python manage.py flush --noinput')
                os.system('python manage.py migrate')
                os.system('python manage.py seed')
                print("✅ Reset concluído!")
            return

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
