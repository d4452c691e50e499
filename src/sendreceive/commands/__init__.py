"""
Commands - Implementations of the sendreceive CLI commands.

- deploy:   Deploy the SendReceive contract
- interact: Approve a token spend and call multiSend
"""
