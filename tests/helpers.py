def make_source(name, population, code=None, capital="Capital", region="Region", flag=None):
    currencies = [{"code": code, "name": f"{code} money", "symbol": "$"}] if code else []
    return {
        "name": name,
        "capital": capital,
        "region": region,
        "population": population,
        "flag": flag or f"https://flags.example/{name.lower()}.svg",
        "currencies": currencies,
    }
