from app.storeapi import create_app

app = create_app()
