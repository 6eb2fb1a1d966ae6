import uvicorn

if __name__ == "__main__":
    print("🚀 Starting Delivery Service backend...")
    uvicorn.run("delivery_api.main:app", host="127.0.0.1", port=8000, reload=False)
