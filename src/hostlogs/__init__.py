"""hostlogs: agregação de logs do host (journal, syslog, containers e aplicação).

Os subpacotes seguem a mesma divisão por responsabilidade:

- ``config``: carregamento de configurações (.env + ambiente)
- ``sources``: leitores de cada origem e normalização de registros
- ``core``: agregação/paginação, ações (clear/export/forward) e CLI
- ``system``: helpers de processo, ficheiros e datas
- ``exporter``: servidor HTTP e integração com Loki
"""

__version__ = "0.3.0"
