"""Protocol backends implementing the vault and registry interfaces."""
