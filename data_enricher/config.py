# data_enricher/config.py
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Upload limit (MB)
MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "20"))  # default 20 MB

# Export settings (semicolon for Brazilian spreadsheet tools)
OUTPUT_DELIMITER: str = os.getenv("OUTPUT_DELIMITER", ";")
OUTPUT_INCLUDE_BOM: bool = os.getenv("OUTPUT_INCLUDE_BOM", "true").lower() in ("true", "1", "yes")
OUTPUT_FILENAME_PREFIX: str = os.getenv("OUTPUT_FILENAME_PREFIX", "dados_enriquecidos")

# What to do when two master rows share the same normalized CPF: keep_first | keep_last
DUPLICATE_KEY_POLICY: str = os.getenv("DUPLICATE_KEY_POLICY", "keep_first")

# Diagnostics
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("LOG_FILE", "logs/data_enricher.log")
DIAGNOSTICS_BUFFER_SIZE: int = int(os.getenv("DIAGNOSTICS_BUFFER_SIZE", "1000"))

# Credentials for the diagnostics routes
ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "dev123")

# Delimiters tried when sniffing an uploaded file
CANDIDATE_DELIMITERS = [",", ";", "\t", "|"]

# Columns of the enriched export, in order
OUTPUT_FIELDS = ["cpf", "nome", "email", "telefone"]

# Address columns a master file may carry; passed through, never joined on
MASTER_ADDRESS_FIELDS = [
    "codigo", "cep", "rua", "numero", "complemento", "bairro", "cidade", "uf"
]

# Header aliases, checked in this order (first match wins)
CPF_HEADER_TERMS = ["cpf", "documento", "cnpj", "doc"]
NAME_HEADER_LABELS = ["nome", "name"]
EMAIL_HEADER_TERMS = ["email", "e-mail"]
PHONE_HEADER_TERMS = ["telefone", "phone", "fone"]

# Content sniffing: words looked for in the probe row, plus positional labels
CPF_CONTENT_TERMS = ["cpf", "documento"]
NAME_CONTENT_TERMS = ["nome", "name"]
POSITIONAL_LABELS = {
    "cpf": ["3"],
    "nome": ["", "0"],
    "email": ["1"],
    "telefone": ["2"],
}

# Match rate above which a run is reported as "high"
HIGH_MATCH_RATE: float = 50.0
