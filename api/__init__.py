"""Material Delivery Plan API - spreadsheet-backed table store on Vercel."""
