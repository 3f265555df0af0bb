"""e-Gov 法令データの取得"""
