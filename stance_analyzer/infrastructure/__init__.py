"""Infrastructure: outbound clients, database and repositories"""
