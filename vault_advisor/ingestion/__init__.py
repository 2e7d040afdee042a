"""
Ingestion of raw vault records supplied by the ledger query service.

Modules
-------
snapshot : load_raw_records() — read raw records from a JSON file.
parser   : parse_vault_records() — validate records into VaultSnapshot.
"""
