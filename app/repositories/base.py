"""
Base Repository - Interface comum para todos os repositories.

Este modulo define a interface base que todos os repositories
devem implementar, garantindo consistencia e facilitando testes.
"""
from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional, Any

# Type variable para entidades
T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """
    Interface base para repositories.

    Todos os repositories devem herdar desta classe e implementar
    os metodos abstratos.

    Attributes:
        db: Cliente de banco de dados (Supabase, fake em memoria, etc.)
        table_name: Nome da tabela no banco de dados

    Example:
        class EmailJobRepository(BaseRepository[EmailJob]):
            @property
            def table_name(self) -> str:
                return "email_jobs"

            async def buscar_por_id(self, id: str) -> Optional[EmailJob]:
                response = self.table().select("*").eq("id", id).execute()
                return EmailJob.from_dict(response.data[0]) if response.data else None
    """

    def __init__(self, db_client: Any):
        """
        Inicializa o repository.

        Args:
            db_client: Cliente de banco de dados (Supabase, fake, etc.)
        """
        self.db = db_client

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Nome da tabela no banco."""
        pass

    def table(self):
        """Atalho para o query builder da tabela."""
        return self.db.table(self.table_name)

    @abstractmethod
    async def buscar_por_id(self, id: str) -> Optional[T]:
        """
        Busca entidade por ID.

        Args:
            id: UUID da entidade

        Returns:
            Entidade ou None se nao encontrada
        """
        pass

    @abstractmethod
    async def criar(self, data: dict) -> T:
        """
        Cria nova entidade.

        Args:
            data: Dados da entidade

        Returns:
            Entidade criada com ID
        """
        pass
