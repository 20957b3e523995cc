from prisma import Prisma


def create_client() -> Prisma:
    """
    Creates the Prisma client for the process.
    The connection itself is opened and closed by the app lifespan.
    """
    return Prisma()
