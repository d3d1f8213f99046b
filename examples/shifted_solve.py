import torch
import torch_cgm as cgm


if __name__ == '__main__':
    device = 'cuda' if torch.cuda.is_available() else 'cpu'
    n = 10
    A = torch.rand(n, n).double().to(device) 
    A = A @ A.T + n * torch.eye(n).double().to(device)
    A = A.to_sparse_coo().coalesce()
    
    b = torch.randn(n).double().to(device)
    sigma = [0.0, 0.1, 1.0, 10.0]
    X = cgm.spsolve_shifted(A.values(), A.indices()[0], A.indices()[1], tuple(A.shape), b, sigma, rtol=1e-10)

    for s, x in zip(sigma, X):
        print(f"sigma={s} x={x}")
