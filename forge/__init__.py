"""dapp-forge: blueprint graph core for composing dapps from typed blocks."""
