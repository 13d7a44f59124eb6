"""MPS バックエンドの FastAPI アプリパッケージ。

ルートは app.api でルーターとして登録します。
"""
